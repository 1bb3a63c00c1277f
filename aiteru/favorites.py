# -*- coding: utf-8 -*-
"""
よく使う (路線, 駅) のランキング.

The ranker does not own any global state: a store implementing ``get`` /
``upsert`` / ``items`` is injected, either in-memory or SQLite-backed.
"""
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Protocol, Tuple

FavoriteKey = Tuple[str, str]  # (railway, station)


class FavoriteEntry(NamedTuple):
    railway: str
    station: str
    count: int


class FavoritesStore(Protocol):
    def get(self, key: FavoriteKey) -> int:
        ...

    def upsert(self, key: FavoriteKey, count: int) -> None:
        ...

    def items(self) -> Iterator[Tuple[FavoriteKey, int]]:
        ...


class InMemoryFavoritesStore:
    def __init__(self) -> None:
        self._counts: Dict[FavoriteKey, int] = {}
        self._lock = threading.Lock()

    def get(self, key: FavoriteKey) -> int:
        with self._lock:
            return self._counts.get(key, 0)

    def upsert(self, key: FavoriteKey, count: int) -> None:
        with self._lock:
            self._counts[key] = count

    def items(self) -> Iterator[Tuple[FavoriteKey, int]]:
        with self._lock:
            snapshot = list(self._counts.items())
        return iter(snapshot)


class SqliteFavoritesStore:
    """SQLite 永続化ストア. テーブルは初回アクセス時に作成する."""

    def __init__(self, db_path) -> None:
        self.db_path = Path(db_path)
        self._initialized = False

    def _init_db(self) -> None:
        if self._initialized:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS favorites (
                    railway TEXT NOT NULL,
                    station TEXT NOT NULL,
                    count INTEGER NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (railway, station)
                )
            """)
            conn.commit()
        finally:
            conn.close()
        self._initialized = True

    def _connect(self) -> sqlite3.Connection:
        self._init_db()
        return sqlite3.connect(str(self.db_path))

    def get(self, key: FavoriteKey) -> int:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT count FROM favorites WHERE railway = ? AND station = ?", key
            ).fetchone()
            return int(row[0]) if row else 0
        finally:
            conn.close()

    def upsert(self, key: FavoriteKey, count: int) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO favorites (railway, station, count, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(railway, station)
                DO UPDATE SET count = excluded.count, updated_at = excluded.updated_at
                """,
                (key[0], key[1], count, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def items(self) -> Iterator[Tuple[FavoriteKey, int]]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT railway, station, count FROM favorites").fetchall()
        finally:
            conn.close()
        return iter([((r[0], r[1]), int(r[2])) for r in rows])


class FavoritesRanker:
    def __init__(self, store: FavoritesStore) -> None:
        self.store = store
        self._lock = threading.Lock()

    def record(self, railway: str, station: str) -> int:
        """検索1回分を加算し、新しい回数を返す."""
        key = (railway, station)
        with self._lock:
            count = self.store.get(key) + 1
            self.store.upsert(key, count)
        return count

    def top(self, n: int = 5) -> List[FavoriteEntry]:
        entries = [
            FavoriteEntry(railway, station, count)
            for (railway, station), count in self.store.items()
            if count > 0
        ]
        entries.sort(key=lambda e: (-e.count, e.railway, e.station))
        return entries[:max(0, n)]
