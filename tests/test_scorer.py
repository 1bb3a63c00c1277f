# -*- coding: utf-8 -*-
"""
CongestionScorer ユニットテスト
"""
import pytest

from aiteru.models import CongestionWindow, Event, RidershipProfile, TimeWeightTable
from aiteru.scorer import peak_throughput, scale_for, score, weighted_throughput


def _event(attendance, *windows):
    return Event(
        venue_id="v1",
        name="テストイベント",
        estimated_attendance=attendance,
        congestion_windows=tuple(CongestionWindow(*w) for w in windows),
    )


@pytest.fixture
def default_profile():
    return RidershipProfile(station_id="st.X", daily_passengers=25000, is_default=False)


class TestWeightedThroughput:
    def test_window_inside_single_band(self, default_profile, time_weights):
        # 17-19: 2h × (25000 × 0.12 / 3) = 2000
        window = CongestionWindow(17, 19, "開場前")
        assert weighted_throughput(window, default_profile, time_weights) == pytest.approx(2000.0)

    def test_window_spanning_bands(self, default_profile, time_weights):
        # 16-18: 1h × (25000 × 0.05 / 7) + 1h × (25000 × 0.12 / 3)
        window = CongestionWindow(16, 18, "開場前")
        expected = 25000 * 0.05 / 7 + 1000.0
        assert weighted_throughput(window, default_profile, time_weights) == pytest.approx(expected)

    @pytest.mark.parametrize("start,end", [(19, 19), (21, 17), (24, 0)])
    def test_inverted_or_empty_window_contributes_zero(self, default_profile, time_weights, start, end):
        window = CongestionWindow(start, end, "x")
        assert weighted_throughput(window, default_profile, time_weights) == 0.0

    @pytest.mark.parametrize("passengers", [0, 1, 25000, 160000, 3_000_000])
    def test_full_day_over_unit_partition_equals_daily_passengers(self, passengers):
        table = TimeWeightTable.from_ranges([
            (0, 6, 0.05), (6, 10, 0.35), (10, 16, 0.2), (16, 20, 0.3), (20, 24, 0.1),
        ])
        profile = RidershipProfile("st.X", passengers)
        window = CongestionWindow(0, 24, "終日")
        assert weighted_throughput(window, profile, table) == pytest.approx(passengers)

    def test_peak_is_max_not_sum(self, default_profile, time_weights):
        event = _event(100, (17, 19, "開場前"), (21, 22, "終演後"), (3, 1, "壊れた窓"))
        # 17-19 → 2000, 21-22 → 312.5
        assert peak_throughput(event, default_profile, time_weights) == pytest.approx(2000.0)


class TestScalePolicy:
    @pytest.mark.parametrize("attendance,ratio,expected", [
        (5000, 2.5, 10),
        (50001, 0.0, 10),
        (50000, 0.0, 8),
        (100, 0.51, 10),
        (100, 0.5, 8),
        (10001, 0.0, 8),
        (100, 0.21, 8),
        (100, 0.2, 5),
        (100, 0.06, 5),
        (100, 0.05, 3),
        (1, 0.0, 3),
        (0, 0.0, 1),
    ])
    def test_first_match(self, attendance, ratio, expected):
        assert scale_for(attendance, ratio) == expected


class TestScore:
    def test_documented_example(self, default_profile, time_weights):
        scored = score(_event(5000, (17, 19, "開場前")), default_profile, time_weights)

        assert scored.scale == 10
        assert "5,000" in scored.reason
        assert "2,000" in scored.reason
        assert "2.50" in scored.reason

    def test_no_windows_uses_attendance_only(self, default_profile, time_weights):
        assert score(_event(800), default_profile, time_weights).scale == 3
        assert score(_event(60000), default_profile, time_weights).scale == 10

    def test_zero_attendance_no_windows(self, default_profile, time_weights):
        scored = score(_event(0), default_profile, time_weights)

        assert scored.scale == 1
        assert scored.reason

    def test_default_profile_is_mentioned_in_reason(self, time_weights):
        profile = RidershipProfile("st.unknown", 25000, is_default=True)
        scored = score(_event(300, (17, 18, "開場前")), profile, time_weights)

        assert "既定値" in scored.reason
        assert "25,000" in scored.reason

    def test_measured_profile_has_no_default_note(self, default_profile, time_weights):
        scored = score(_event(300, (17, 18, "開場前")), default_profile, time_weights)
        assert "既定値" not in scored.reason

    def test_reason_is_deterministic(self, default_profile, time_weights):
        event = _event(4321, (9, 11, "開場前"))
        assert score(event, default_profile, time_weights) == score(event, default_profile, time_weights)

    def test_zero_ridership_station(self, time_weights):
        profile = RidershipProfile("st.empty", 0)
        assert score(_event(10, (17, 19, "開場前")), profile, time_weights).scale == 3

    def test_scale_is_monotonic_in_attendance(self, time_weights):
        profile = RidershipProfile("st.X", 160000)
        for windows in [(), ((17, 19, "開場前"),), ((6, 8, "開場前"), (22, 23, "終演後"))]:
            previous = 0
            for attendance in [0, 1, 50, 500, 1000, 3000, 8000, 10001, 20000, 40000, 50001, 10**6]:
                current = score(_event(attendance, *windows), profile, time_weights).scale
                assert 1 <= current <= 10
                assert current >= previous
                previous = current

    def test_scored_event_keeps_event_fields(self, default_profile, time_weights):
        event = _event(1200, (18, 19, "開場前"))
        scored = score(event, default_profile, time_weights)

        assert scored.event is event
        assert scored.name == "テストイベント"
        assert scored.estimated_attendance == 1200
        assert scored.congestion_windows == event.congestion_windows
