# -*- coding: utf-8 -*-
"""
EventNormalizer
===============
Validates and repairs the loosely structured event-fact payload returned by the
generative search service into ``(venue_name, [Event, ...])`` pairs.

Accepted payload shapes:
    - JSON text, optionally wrapped in a Markdown ```json fence (any case)
    - JSON text with explanatory prose before or after the array
    - an already-decoded list of facility objects
    - a single facility object (wrapped into a one-element list)

Repair rules:
    - facility without ``events``        → empty event list (facility kept)
    - event without windows              → empty window list
    - negative / non-numeric attendance  → 0
    - window with non-numeric hours      → window dropped
    - hours outside [0, 24]              → clamped

Nothing here raises for malformed data; an empty or unparsable payload simply
yields no facilities.
"""
import json
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from aiteru.models import CongestionWindow, Event, Venue
from aiteru.utils import normalize_venue_name

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)
_JSON_START_RE = re.compile(r"[\[{]")

FACILITY_NAME_KEYS = ("facility_name", "name", "venue_name")
EVENT_NAME_KEYS = ("event_name", "name")
ATTENDANCE_KEYS = ("estimated_attendance", "attendance", "expected_attendance")
WINDOW_KEYS = ("congestion_windows", "congestion_predictions")


def load_payload(raw: Any) -> Optional[List[Any]]:
    """
    Decode ``raw`` into a list of facility entries.

    Returns None when the payload is empty or cannot be read as structured data.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = _strip_fence(raw)
        if not text:
            return None
        raw = _decode_json(text)
        if raw is None:
            logger.warning("Event payload is not valid JSON (%d chars)", len(text))
            return None
    if isinstance(raw, dict):
        # 配列ではなく単一オブジェクトで返ってくることがある
        return [raw]
    if isinstance(raw, list):
        return raw
    return None


def normalize_facilities(raw: Any, venues: Optional[Iterable[Venue]] = None
                         ) -> List[Tuple[str, List[Event]]]:
    """Return ``[(venue_name, events)]``; ``[]`` means "no events found"."""
    entries = load_payload(raw)
    if not entries:
        return []

    venue_ids = _venue_index(venues or [])
    result = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        venue_name = _first_str(entry, FACILITY_NAME_KEYS) or ""
        venue_id = _resolve_venue_id(venue_name, venue_ids)
        events = [
            normalize_event(raw_event, venue_id)
            for raw_event in _as_list(entry.get("events"))
            if isinstance(raw_event, dict)
        ]
        result.append((venue_name, events))
    return result


def normalize_event(raw_event: Dict[str, Any], venue_id: Optional[str] = None) -> Event:
    # null の別名キーは無視して次の候補を見る
    windows_raw = _as_list(_first_present(raw_event, WINDOW_KEYS))

    windows = []
    for raw_window in windows_raw:
        window = normalize_window(raw_window)
        if window is not None:
            windows.append(window)

    attendance = coerce_attendance(_first_present(raw_event, ATTENDANCE_KEYS))

    return Event(
        venue_id=venue_id,
        name=_first_str(raw_event, EVENT_NAME_KEYS),
        estimated_attendance=attendance,
        congestion_windows=tuple(windows),
    )


def normalize_window(raw_window: Any) -> Optional[CongestionWindow]:
    if not isinstance(raw_window, dict):
        return None
    start = _coerce_hour(raw_window.get("start_hour"))
    end = _coerce_hour(raw_window.get("end_hour"))
    if start is None or end is None:
        return None
    label = raw_window.get("label")
    return CongestionWindow(
        start_hour=start,
        end_hour=end,
        label=str(label).strip() if label is not None else "",
    )


def coerce_attendance(value: Any) -> int:
    """「5,000」「12000.0」などを整数に。負数・数値でないものは 0."""
    number = _coerce_number(value)
    if number is None or number <= 0:
        return 0
    return int(number)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _strip_fence(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1)
    return text.strip()


def _decode_json(text: str) -> Any:
    """JSON 全体として読めなければ、前後の説明文を無視して最初の配列/オブジェクトを拾う."""
    try:
        return json.loads(text)
    except ValueError:
        pass
    decoder = json.JSONDecoder()
    for match in _JSON_START_RE.finditer(text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(value, (list, dict)):
            return value
    return None


def _first_present(entry: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.replace(",", "").replace("，", "").strip()
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_hour(value: Any) -> Optional[int]:
    number = _coerce_number(value)
    if number is None:
        return None
    return min(24, max(0, int(number)))


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _first_str(entry: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _venue_index(venues: Iterable[Venue]) -> Dict[str, str]:
    index: Dict[str, str] = {}
    for venue in venues:
        index.setdefault(venue.name, venue.id)
        index.setdefault(normalize_venue_name(venue.name), venue.id)
    return index


def _resolve_venue_id(venue_name: str, venue_ids: Dict[str, str]) -> Optional[str]:
    if not venue_name:
        return None
    if venue_name in venue_ids:
        return venue_ids[venue_name]
    return venue_ids.get(normalize_venue_name(venue_name))
