# -*- coding: utf-8 -*-
"""
キャッシュ管理モジュール
- /congestion エンドポイント用 LRU キャッシュ (TTL 5分, 最大100件)
- 乗降客数データの再読み込み時に無効化
- Thread-safe: RLock で同時アクセスを保護
"""
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Hashable, Optional, Tuple


class TimelineCache:
    """
    LRU + TTL cache for station timelines (thread-safe).

    Key: (station_id, station_name, target_date). Gemini calls are slow and
    metered, so repeated searches for the same station and day reuse the result.
    """

    def __init__(self, max_size: int = 100, ttl_seconds: int = 300):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.cache: "OrderedDict[Tuple[Hashable, ...], Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.RLock()

    def _evict_expired(self, now: float) -> None:
        """caller must hold lock"""
        while self.cache:
            key, (stored_at, _) = next(iter(self.cache.items()))
            if now - stored_at <= self.ttl_seconds:
                break
            del self.cache[key]

    def get(self, station_id: str, station_name: str, target_date: str) -> Optional[Any]:
        key = (station_id, station_name, target_date)
        with self._lock:
            now = time.time()
            entry = self.cache.get(key)
            if entry is None:
                return None
            if now - entry[0] > self.ttl_seconds:
                del self.cache[key]
                return None
            self.cache.move_to_end(key)
            return entry[1]

    def set(self, station_id: str, station_name: str, target_date: str, value: Any) -> None:
        key = (station_id, station_name, target_date)
        with self._lock:
            now = time.time()
            self._evict_expired(now)
            self.cache.pop(key, None)
            while len(self.cache) >= self.max_size:
                self.cache.popitem(last=False)
            self.cache[key] = (now, value)

    def invalidate(self) -> None:
        with self._lock:
            self.cache.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"size": len(self.cache), "max_size": self.max_size}


timeline_cache = TimelineCache(max_size=100, ttl_seconds=300)


def invalidate_timeline_cache():
    """乗降客数データの再読み込み時に呼ぶ."""
    timeline_cache.invalidate()
