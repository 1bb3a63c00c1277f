# -*- coding: utf-8 -*-
"""Nominatim (OpenStreetMap) による駅名 → 座標の解決."""
import logging
from typing import Optional

from aiteru.clients import transport
from aiteru.errors import UpstreamError
from aiteru.models import Coordinates

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    _API_URL = "https://nominatim.openstreetmap.org/search"

    def __init__(self, country_codes="jp", timeout_seconds=10):
        self.country_codes = country_codes
        self.timeout_seconds = timeout_seconds

    def resolve(self, station_name: str) -> Optional[Coordinates]:
        """座標が見つからなければ None. 通信エラーは UpstreamError."""
        params = {
            "q": station_name,
            "countrycodes": self.country_codes,
            "format": "jsonv2",
            "limit": "1",
        }
        try:
            data = transport.fetch_json(self._API_URL, params=params, timeout=self.timeout_seconds)
        except Exception as e:
            logger.error("Nominatim request failed for %s: %s", station_name, e)
            raise UpstreamError("駅の座標検索中にエラーが発生しました。", error=str(e))

        if not data:
            return None
        first = data[0]
        try:
            return Coordinates(
                lat=float(first["lat"]),
                lon=float(first["lon"]),
                display_name=first.get("display_name", ""),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Nominatim returned an unusable result for %s", station_name)
            return None
