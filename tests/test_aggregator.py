# -*- coding: utf-8 -*-
"""IntervalAggregator のテスト"""
from aiteru.aggregator import aggregate, flatten
from aiteru.models import CongestionWindow, Event, ScoredEvent


def _scored(name, scale, *windows):
    event = Event(
        venue_id=None,
        name=name,
        estimated_attendance=1000,
        congestion_windows=tuple(CongestionWindow(*w) for w in windows),
    )
    return ScoredEvent(event=event, scale=scale, reason="test")


def test_empty_input_returns_empty():
    assert aggregate([], min_scale=5) == []


def test_all_below_threshold_returns_empty():
    scored = [("会場A", _scored("小規模", 3, (17, 18, "開場前")))]
    assert aggregate(scored) == []


def test_zero_attendance_event_never_appears():
    scored = [("会場A", _scored("なし", 1))]
    assert aggregate(scored, min_scale=5) == []


def test_shared_window_is_merged_with_saturating_sum():
    scored = [
        ("会場A", _scored("ライブA", 6, (19, 21, "開場前"))),
        ("会場B", _scored("ライブB", 6, (19, 21, "開場前"))),
    ]
    groups = aggregate(scored)

    assert len(groups) == 1
    group = groups[0]
    assert group.key == (19, 21, "開場前")
    assert group.total_scale == 10
    assert group.member_count == 2
    assert [m.venue_name for m in group.member_events] == ["会場A", "会場B"]


def test_total_scale_saturates_for_many_members():
    scored = [(f"会場{i}", _scored(f"e{i}", 10, (18, 19, "開場前"))) for i in range(25)]
    groups = aggregate(scored)

    assert len(groups) == 1
    assert groups[0].total_scale == 10
    assert groups[0].member_count == 25


def test_single_member_keeps_own_scale():
    groups = aggregate([("会場A", _scored("e", 5, (9, 10, "開場前")))])
    assert groups[0].total_scale == 5
    assert groups[0].member_count == 1


def test_sorted_by_start_hour_stable_on_ties():
    scored = [
        ("会場A", _scored("夜", 8, (21, 22, "終演後"))),
        ("会場B", _scored("昼1", 8, (12, 13, "開場前"))),
        ("会場C", _scored("昼2", 8, (12, 14, "開場前"))),
        ("会場D", _scored("朝", 8, (8, 9, "開場前"))),
    ]
    groups = aggregate(scored)

    assert [g.key for g in groups] == [
        (8, 9, "開場前"),
        (12, 13, "開場前"),
        (12, 14, "開場前"),
        (21, 22, "終演後"),
    ]


def test_merge_is_adjacent_only():
    # 同じ開始時刻で (12,14) が間に入ると (12,13) 同士は統合されない
    scored = [
        ("会場A", _scored("a", 5, (12, 13, "開場前"))),
        ("会場B", _scored("b", 5, (12, 14, "開場前"))),
        ("会場C", _scored("c", 5, (12, 13, "開場前"))),
    ]
    groups = aggregate(scored)

    assert [g.key for g in groups] == [
        (12, 13, "開場前"),
        (12, 14, "開場前"),
        (12, 13, "開場前"),
    ]
    assert all(g.member_count == 1 for g in groups)


def test_different_label_same_hours_not_merged():
    scored = [
        ("会場A", _scored("a", 5, (20, 21, "終演後"))),
        ("会場B", _scored("b", 5, (20, 21, "開場前"))),
    ]
    assert len(aggregate(scored)) == 2


def test_every_window_of_an_event_is_placed():
    scored = [("東京ドーム", _scored("野球", 10, (16, 18, "開場前"), (21, 22, "終演後")))]
    groups = aggregate(scored)

    assert [(g.start_hour, g.end_hour, g.label) for g in groups] == [
        (16, 18, "開場前"), (21, 22, "終演後"),
    ]
    assert all(g.member_events[0].event_name == "野球" for g in groups)


def test_filter_is_applied_before_merge():
    scored = [
        ("会場A", _scored("big", 6, (19, 21, "開場前"))),
        ("会場B", _scored("small", 3, (19, 21, "開場前"))),
    ]
    groups = aggregate(scored)
    assert groups[0].total_scale == 6
    assert groups[0].member_count == 1


def test_custom_min_scale():
    scored = [("会場A", _scored("small", 3, (19, 21, "開場前")))]
    assert len(aggregate(scored, min_scale=3)) == 1
    assert aggregate(scored, min_scale=4) == []


def test_aggregate_is_idempotent_and_does_not_mutate_input():
    scored = [
        ("会場A", _scored("a", 6, (19, 21, "開場前"))),
        ("会場B", _scored("b", 7, (17, 18, "開場前"))),
        ("会場C", _scored("c", 6, (19, 21, "開場前"))),
    ]
    snapshot = list(scored)

    first = aggregate(scored)
    second = aggregate(scored)

    assert first == second
    assert scored == snapshot


def test_flatten_emits_one_row_per_window():
    scored = [
        ("会場A", _scored("a", 6, (19, 21, "開場前"), (22, 23, "終演後"))),
        ("会場B", _scored("b", 2)),
    ]
    rows = flatten(scored)
    assert [(r.venue_name, r.start_hour) for r in rows] == [("会場A", 19), ("会場A", 22)]
