# -*- coding: utf-8 -*-
"""
Yahoo! ローカルサーチによるイベント会場検索.

Results are filtered by an excluded-category set and deduplicated by
normalized-name prefix ("東京ドーム" and "東京ドーム 22ゲート" count as one venue;
the first one in distance order is kept).
"""
import logging
import os
from typing import Iterable, List, Optional

from aiteru.clients import transport
from aiteru.errors import UpstreamError
from aiteru.models import Venue
from aiteru.utils import normalize_venue_name

logger = logging.getLogger(__name__)

# ホール・アリーナ・スタジアム・劇場・展示場
VENUE_GC_CODES = "0301002,0301003,0301013,0303001,0305004"
DEFAULT_RADIUS_KM = 2.5
MAX_RESULTS = 100

EXCLUDED_CATEGORIES = frozenset({
    "駐車場",
    "ホテル",
    "コンビニエンスストア",
    "ATM",
    "バス停",
})


class YahooLocalSearchClient:
    _API_URL = "https://map.yahooapis.jp/search/local/V1/localSearch"

    def __init__(self, client_id=None, timeout_seconds=10,
                 excluded_categories: Iterable[str] = EXCLUDED_CATEGORIES):
        self.client_id = client_id or os.getenv("YAHOO_CLIENT_ID")
        self.timeout_seconds = timeout_seconds
        self.excluded_categories = frozenset(excluded_categories)

    def search(self, lat: float, lon: float, radius: float = DEFAULT_RADIUS_KM,
               categories: str = VENUE_GC_CODES) -> List[Venue]:
        if not self.client_id:
            raise UpstreamError("サーバー設定エラー", error="YAHOO_CLIENT_ID is not configured")

        params = {
            "appid": self.client_id,
            "lat": lat,
            "lon": lon,
            "gc": categories,
            "dist": radius,
            "results": MAX_RESULTS,
            "sort": "dist",
            "output": "json",
        }
        try:
            data = transport.fetch_json(self._API_URL, params=params, timeout=self.timeout_seconds)
        except Exception as e:
            logger.error("Yahoo! local search failed: %s", e)
            raise UpstreamError("Yahoo! APIでの会場検索中にエラーが発生しました。", error=str(e))

        features = (data or {}).get("Feature") or []
        venues = [v for v in (parse_feature(f) for f in features) if v is not None]
        venues = filter_categories(venues, self.excluded_categories)
        return dedupe_by_name_prefix(venues)


def parse_feature(feature) -> Optional[Venue]:
    if not isinstance(feature, dict) or not feature.get("Name"):
        return None
    prop = feature.get("Property") or {}
    genres = prop.get("Genre") or []
    category = genres[0].get("Name", "") if genres and isinstance(genres[0], dict) else ""
    return Venue(
        id=str(feature.get("Id") or feature.get("Gid") or feature["Name"]),
        name=str(feature["Name"]),
        address=str(prop.get("Address") or ""),
        category=category,
    )


def filter_categories(venues: Iterable[Venue], excluded: Iterable[str]) -> List[Venue]:
    excluded = frozenset(excluded)
    return [v for v in venues if v.category not in excluded]


def dedupe_by_name_prefix(venues: Iterable[Venue]) -> List[Venue]:
    kept: List[Venue] = []
    kept_names: List[str] = []
    for venue in venues:
        name = normalize_venue_name(venue.name)
        if not name:
            continue
        if any(name.startswith(k) or k.startswith(name) for k in kept_names):
            continue
        kept.append(venue)
        kept_names.append(name)
    return kept
