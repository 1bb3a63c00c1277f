# -*- coding: utf-8 -*-
"""ODPT (公共交通オープンデータ) API: 路線・駅一覧と駅別乗降人員."""
import logging
import os
import threading
import time
import unicodedata
from collections import OrderedDict
from typing import Any, Dict, Hashable, List, Optional, Tuple

from aiteru.clients import transport
from aiteru.errors import UpstreamError
from aiteru.ridership import build_passenger_map

logger = logging.getLogger(__name__)

DEFAULT_OPERATOR = "odpt.Operator:JR-East"

# 路線・駅一覧はほぼ変わらないので1時間キャッシュする
CATALOGUE_TTL_SECONDS = 3600


class CatalogueCache:
    """
    TTL cache for the railway / station lists (thread-safe).

    Key: (resource, railway_id). Same eviction scheme as the timeline cache.
    """

    def __init__(self, max_size: int = 200, ttl_seconds: int = CATALOGUE_TTL_SECONDS):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.cache: "OrderedDict[Tuple[Hashable, ...], Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.RLock()

    def get(self, key: Tuple[Hashable, ...]) -> Optional[Any]:
        with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None
            if time.time() - entry[0] > self.ttl_seconds:
                del self.cache[key]
                return None
            self.cache.move_to_end(key)
            return entry[1]

    def set(self, key: Tuple[Hashable, ...], value: Any) -> None:
        with self._lock:
            self.cache.pop(key, None)
            while len(self.cache) >= self.max_size:
                self.cache.popitem(last=False)
            self.cache[key] = (time.time(), value)

    def invalidate(self) -> None:
        with self._lock:
            self.cache.clear()


class OdptClient:
    _API_BASE = "https://api-challenge.odpt.org/api/v4"

    def __init__(self, consumer_key=None, operator=DEFAULT_OPERATOR, timeout_seconds=15,
                 catalogue_ttl_seconds=CATALOGUE_TTL_SECONDS):
        self.consumer_key = consumer_key or os.getenv("ODPT_CONSUMER_KEY")
        self.operator = operator
        self.timeout_seconds = timeout_seconds
        self.catalogue_cache = CatalogueCache(ttl_seconds=catalogue_ttl_seconds)

    @property
    def configured(self) -> bool:
        return bool(self.consumer_key)

    def _get(self, resource: str, params: Dict[str, str]):
        if not self.consumer_key:
            raise UpstreamError("サーバー設定エラー", error="ODPT_CONSUMER_KEY is not set")
        query = dict(params)
        query["acl:consumerKey"] = self.consumer_key
        try:
            rows = transport.fetch_json(
                f"{self._API_BASE}/{resource}", params=query, timeout=self.timeout_seconds
            )
        except Exception as e:
            logger.error("ODPT %s request failed: %s", resource, e)
            raise UpstreamError(f"Failed to fetch {resource}", error=str(e))
        return rows if isinstance(rows, list) else []

    def fetch_railways(self) -> List[Dict[str, str]]:
        key = ("odpt:Railway", self.operator)
        cached = self.catalogue_cache.get(key)
        if cached is not None:
            return list(cached)

        rows = self._get("odpt:Railway", {"odpt:operator": self.operator})
        options = [
            {
                "label": _label(r, "odpt:railwayTitle"),
                "value": r.get("owl:sameAs", ""),
                "color": r.get("odpt:color"),
                "code": r.get("odpt:lineCode"),
            }
            for r in rows
        ]
        options.sort(key=lambda o: label_sort_key(o["label"]))
        self.catalogue_cache.set(key, options)
        return list(options)

    def fetch_stations(self, railway_id: str) -> List[Dict[str, str]]:
        if not railway_id:
            return []
        key = ("odpt:Station", railway_id)
        cached = self.catalogue_cache.get(key)
        if cached is not None:
            return list(cached)

        rows = self._get("odpt:Station", {"odpt:railway": railway_id})
        options = [
            {"label": _label(r, "odpt:stationTitle"), "value": r.get("owl:sameAs", "")}
            for r in rows
        ]
        options.sort(key=lambda o: label_sort_key(o["label"]))
        self.catalogue_cache.set(key, options)
        return list(options)

    def fetch_passenger_survey(self) -> Dict[str, int]:
        rows = self._get("odpt:PassengerSurvey", {"odpt:operator": self.operator})
        passenger_map = build_passenger_map(rows)
        logger.info("ODPT passenger survey: %d records -> %d stations", len(rows), len(passenger_map))
        return passenger_map


def label_sort_key(label: str) -> Tuple[str, str]:
    """
    日本語ラベルの並び順キー.

    NFKC で全角/半角を揃え、カタカナをひらがなに寄せる (「ケイヨウ」と「けいよう」が並ぶ).
    漢字の読み順までは再現しない.
    """
    text = unicodedata.normalize("NFKC", label or "")
    folded = "".join(
        chr(ord(ch) - 0x60) if "ァ" <= ch <= "ヶ" else ch
        for ch in text
    )
    return folded.casefold(), text


def _label(row, title_key) -> str:
    title = row.get(title_key)
    return (
        row.get("dc:title")
        or (title.get("ja") if isinstance(title, dict) else None)
        or row.get("owl:sameAs", "")
    )
