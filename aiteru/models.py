# -*- coding: utf-8 -*-
"""
混雑推定パイプラインのデータモデル.

All records are frozen dataclasses: profiles and weight tables are read-only
per request, and Event / ScoredEvent / TimelineGroup are built fresh for each
request and thrown away afterwards.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    address: str = ""
    category: str = ""


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float
    display_name: str = ""


@dataclass(frozen=True)
class RidershipProfile:
    """駅の1日あたり乗降客数 (乗車+降車)."""
    station_id: str
    daily_passengers: int
    is_default: bool = False


@dataclass(frozen=True)
class TimeBand:
    start_hour: int
    end_hour: int
    ratio: float

    @property
    def duration(self) -> int:
        return self.end_hour - self.start_hour


@dataclass(frozen=True)
class TimeWeightTable:
    """
    時間帯ごとの乗降客数の比率テーブル.

    Bands must be contiguous, non-overlapping and cover [0, 24) exactly.
    The ratios describe how peaked the day is; they do not have to sum to 1.0.
    """
    bands: Tuple[TimeBand, ...]

    def __post_init__(self):
        bands = tuple(sorted(self.bands, key=lambda b: b.start_hour))
        if not bands:
            raise ValueError("TimeWeightTable requires at least one band")
        expected = 0
        for band in bands:
            if band.start_hour != expected:
                raise ValueError(
                    f"time bands must be contiguous from 0: gap or overlap at hour {band.start_hour}"
                )
            if band.end_hour <= band.start_hour:
                raise ValueError(f"empty time band: {band.start_hour}-{band.end_hour}")
            if band.ratio < 0:
                raise ValueError(f"negative ratio in band {band.start_hour}-{band.end_hour}")
            expected = band.end_hour
        if expected != 24:
            raise ValueError(f"time bands must end at hour 24, got {expected}")
        object.__setattr__(self, "bands", bands)

    @classmethod
    def from_ranges(cls, ranges) -> "TimeWeightTable":
        """[(start, end, ratio), ...] から生成する."""
        return cls(tuple(TimeBand(int(s), int(e), float(r)) for s, e, r in ranges))


@dataclass(frozen=True)
class CongestionWindow:
    start_hour: int
    end_hour: int
    label: str = ""

    @property
    def is_valid(self) -> bool:
        return self.end_hour > self.start_hour

    @property
    def key(self) -> Tuple[int, int, str]:
        return (self.start_hour, self.end_hour, self.label)


@dataclass(frozen=True)
class Event:
    venue_id: Optional[str]
    name: Optional[str]
    estimated_attendance: int = 0
    congestion_windows: Tuple[CongestionWindow, ...] = ()


@dataclass(frozen=True)
class ScoredEvent:
    event: Event
    scale: int
    reason: str

    @property
    def name(self) -> Optional[str]:
        return self.event.name

    @property
    def estimated_attendance(self) -> int:
        return self.event.estimated_attendance

    @property
    def congestion_windows(self) -> Tuple[CongestionWindow, ...]:
        return self.event.congestion_windows


@dataclass(frozen=True)
class TimelineMember:
    venue_name: str
    event_name: Optional[str]
    scale: int


@dataclass
class TimelineGroup:
    """同一の (start_hour, end_hour, label) を持つイベントをまとめたタイムライン項目."""
    start_hour: int
    end_hour: int
    label: str
    total_scale: int
    member_events: List[TimelineMember] = field(default_factory=list)

    @property
    def key(self) -> Tuple[int, int, str]:
        return (self.start_hour, self.end_hour, self.label)

    @property
    def member_count(self) -> int:
        return len(self.member_events)
