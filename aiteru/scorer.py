# -*- coding: utf-8 -*-
"""
CongestionScorer
================
Converts one event's estimated attendance into a 1-10 congestion scale.

Formula:
    W(window) = Σ_b  overlap(window, b) × (P × ratio_b / duration_b)
    W(event)  = max over valid windows of W(window)       [worst-case window]
    ratio     = attendance / W(event)                      (0 when W = 0)

    Where:
        P        : daily boarding + alighting passengers (RidershipProfile)
        ratio_b  : share of P passing through band b (TimeWeightTable)

Scale policy (first match wins):
    ratio > 0.5  or attendance > 50,000   → 10
    ratio > 0.2  or attendance > 10,000   → 8
    ratio > 0.05                          → 5
    attendance > 0                        → 3
    otherwise                             → 1
"""
import numpy as np

from aiteru.models import (
    CongestionWindow, Event, RidershipProfile, ScoredEvent, TimeWeightTable,
)

MIN_SCALE = 1
MAX_SCALE = 10

# (ratio threshold, absolute attendance threshold, scale)
SCALE_POLICY = (
    (0.5, 50000, 10),
    (0.2, 10000, 8),
    (0.05, None, 5),
)


def weighted_throughput(window: CongestionWindow, profile: RidershipProfile,
                        table: TimeWeightTable) -> float:
    """時間帯 [start, end) に駅を通過する乗降客数の推定値."""
    if not window.is_valid:
        return 0.0

    starts = np.array([b.start_hour for b in table.bands], dtype=float)
    ends = np.array([b.end_hour for b in table.bands], dtype=float)
    ratios = np.array([b.ratio for b in table.bands], dtype=float)

    overlap = np.clip(
        np.minimum(window.end_hour, ends) - np.maximum(window.start_hour, starts),
        0.0, None,
    )
    per_hour = profile.daily_passengers * ratios / (ends - starts)
    return float(np.sum(overlap * per_hour))


def peak_throughput(event: Event, profile: RidershipProfile, table: TimeWeightTable) -> float:
    values = [
        weighted_throughput(w, profile, table)
        for w in event.congestion_windows if w.is_valid
    ]
    return max(values) if values else 0.0


def scale_for(attendance: int, ratio: float) -> int:
    for ratio_threshold, attendance_threshold, scale in SCALE_POLICY:
        if ratio > ratio_threshold:
            return scale
        if attendance_threshold is not None and attendance > attendance_threshold:
            return scale
    if attendance > 0:
        return 3
    return MIN_SCALE


def format_reason(attendance: int, throughput: float, ratio: float,
                  profile: RidershipProfile) -> str:
    reason = (
        f"予想来場者数 {attendance:,}人 / 混雑時間帯の駅乗降客数 約{round(throughput):,}人"
        f" (比率 {ratio:.2f})"
    )
    if profile.is_default:
        reason += f"。乗降客数データが無いため既定値 {profile.daily_passengers:,}人/日 を使用"
    return reason


def score(event: Event, profile: RidershipProfile, table: TimeWeightTable) -> ScoredEvent:
    throughput = peak_throughput(event, profile, table)
    attendance = max(0, int(event.estimated_attendance))
    ratio = attendance / throughput if throughput > 0 else 0.0
    return ScoredEvent(
        event=event,
        scale=scale_for(attendance, ratio),
        reason=format_reason(attendance, throughput, ratio, profile),
    )
