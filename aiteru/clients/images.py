# -*- coding: utf-8 -*-
"""Wikipedia の位置検索から駅周辺の代表画像を1枚取得する."""
import logging
from typing import Optional

from aiteru.clients import transport
from aiteru.utils import normalize_station_name

logger = logging.getLogger(__name__)


class WikipediaImageClient:
    _API_URL = "https://ja.wikipedia.org/w/api.php"

    def __init__(self, radius_m=1000, thumb_size=640, timeout_seconds=5):
        self.radius_m = radius_m
        self.thumb_size = thumb_size
        self.timeout_seconds = timeout_seconds

    def fetch(self, lat: float, lon: float, station_name: str) -> Optional[str]:
        """画像URLを返す. 取得できなければ None (エラーにはしない)."""
        params = {
            "action": "query",
            "format": "json",
            "generator": "geosearch",
            "ggscoord": f"{lat}|{lon}",
            "ggsradius": self.radius_m,
            "ggslimit": 10,
            "prop": "pageimages",
            "piprop": "thumbnail",
            "pithumbsize": self.thumb_size,
        }
        try:
            data = transport.fetch_json(self._API_URL, params=params, timeout=self.timeout_seconds)
        except Exception as e:
            logger.warning("Image lookup failed for %s: %s", station_name, e)
            return None
        return pick_image(data, station_name)


def pick_image(data, station_name: str) -> Optional[str]:
    """駅名を含むページの画像を優先し、無ければ最も近いページの画像."""
    pages = ((data or {}).get("query") or {}).get("pages") or {}
    if isinstance(pages, dict):
        pages = list(pages.values())
    pages = sorted(
        (p for p in pages if isinstance(p, dict) and (p.get("thumbnail") or {}).get("source")),
        key=lambda p: p.get("index", 0),
    )
    if not pages:
        return None

    wanted = normalize_station_name(station_name)
    if wanted:
        for page in pages:
            if wanted in normalize_station_name(page.get("title", "")):
                return page["thumbnail"]["source"]
    return pages[0]["thumbnail"]["source"]
