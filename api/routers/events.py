# -*- coding: utf-8 -*-
"""
Events API Router
=================
Fetches event facts for a list of facilities near a station, then scores and
aggregates them into a congestion timeline.
"""
import asyncio

from fastapi import APIRouter, HTTPException

from aiteru.models import Venue
from aiteru.pipeline import CongestionResult
from api.dependencies import registry
from api.schemas import (
    CongestionWindowItem, EventsRequest, EventsResponse, FacilityEvents,
    RidershipItem, ScoredEventItem, TimelineGroupItem, TimelineMemberItem,
)

router = APIRouter()


def serialize_result(result: CongestionResult) -> dict:
    """CongestionResult → レスポンス用フィールド (ridership / facilities / timeline)."""
    profile = result.profile
    facilities = [
        FacilityEvents(
            facility_name=venue_name,
            events=[
                ScoredEventItem(
                    event_name=s.name,
                    venue_id=s.event.venue_id,
                    estimated_attendance=s.estimated_attendance,
                    scale=s.scale,
                    reason=s.reason,
                    congestion_predictions=[
                        CongestionWindowItem(start_hour=w.start_hour, end_hour=w.end_hour, label=w.label)
                        for w in s.congestion_windows
                    ],
                )
                for s in scored
            ],
        )
        for venue_name, scored in result.venues
    ]
    timeline = [
        TimelineGroupItem(
            start_hour=g.start_hour,
            end_hour=g.end_hour,
            label=g.label,
            total_scale=g.total_scale,
            member_count=g.member_count,
            member_events=[
                TimelineMemberItem(venue_name=m.venue_name, event_name=m.event_name, scale=m.scale)
                for m in g.member_events
            ],
        )
        for g in result.timeline
    ]
    return {
        "ridership": RidershipItem(
            station_id=profile.station_id,
            daily_passengers=profile.daily_passengers,
            is_default=profile.is_default,
        ),
        "facilities": facilities,
        "timeline": timeline,
    }


@router.post(
    "/events",
    response_model=EventsResponse,
    summary="周辺施設のイベントと混雑タイムライン",
    description="対象駅・日付・周辺施設リストから Gemini (Google 検索付き) でイベント情報を取得し、"
    "駅の乗降客数と時間帯重みから混雑度 (1〜10) を算出、時間帯ごとのタイムラインにまとめます。",
    response_description="施設ごとの採点済みイベントと、混雑度5以上の時間帯タイムライン",
)
async def get_events(req: EventsRequest):
    if not req.target_date or not req.facility_list or not req.station_name:
        raise HTTPException(
            status_code=400,
            detail="target_date, facility_list, and station_name are required.",
        )

    pipeline = registry.get_pipeline()
    event_facts = registry.get_service().event_facts
    venues = [Venue(id=name, name=name) for name in req.facility_list if name]

    result = await asyncio.to_thread(
        pipeline.compute_timeline,
        req.station_id, req.station_name, req.target_date, venues, event_facts,
    )
    return EventsResponse(
        station_name=req.station_name,
        target_date=req.target_date,
        **serialize_result(result),
    )
