# -*- coding: utf-8 -*-
"""
IntervalAggregator
==================
Flattens every scored event's congestion windows into timeline rows, drops the
ones below the "noticeable congestion" threshold, sorts them by start hour and
merges rows whose (start_hour, end_hour, label) equals the previous group's key.

The merge looks only at the last emitted group. Two rows sharing a key but
separated by a different window with the same start hour stay in separate
groups.
"""
from typing import Iterable, List, NamedTuple, Optional, Tuple

from aiteru.models import ScoredEvent, TimelineGroup, TimelineMember
from aiteru.scorer import MAX_SCALE

DEFAULT_MIN_SCALE = 5


class _WindowRow(NamedTuple):
    start_hour: int
    end_hour: int
    label: str
    venue_name: str
    event_name: Optional[str]
    scale: int


def flatten(scored_events: Iterable[Tuple[str, ScoredEvent]]) -> List[_WindowRow]:
    rows = []
    for venue_name, scored in scored_events:
        for window in scored.congestion_windows:
            rows.append(_WindowRow(
                window.start_hour, window.end_hour, window.label,
                venue_name, scored.name, scored.scale,
            ))
    return rows


def aggregate(scored_events: Iterable[Tuple[str, ScoredEvent]],
              min_scale: int = DEFAULT_MIN_SCALE) -> List[TimelineGroup]:
    rows = [r for r in flatten(scored_events) if r.scale >= min_scale]
    # sorted() は安定ソート: 同じ開始時刻は出現順を保つ
    rows = sorted(rows, key=lambda r: r.start_hour)

    groups: List[TimelineGroup] = []
    for row in rows:
        member = TimelineMember(row.venue_name, row.event_name, row.scale)
        last = groups[-1] if groups else None
        if last is not None and last.key == (row.start_hour, row.end_hour, row.label):
            last.member_events.append(member)
            last.total_scale = min(MAX_SCALE, last.total_scale + row.scale)
        else:
            groups.append(TimelineGroup(
                start_hour=row.start_hour,
                end_hour=row.end_hour,
                label=row.label,
                total_scale=min(MAX_SCALE, row.scale),
                member_events=[member],
            ))
    return groups
