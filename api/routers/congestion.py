# -*- coding: utf-8 -*-
import logging

from fastapi import APIRouter

from api.cache import timeline_cache
from api.dependencies import registry
from api.routers.events import serialize_result
from api.schemas import CongestionRequest, CongestionResponse, CoordinatesItem, VenueItem

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/congestion",
    response_model=CongestionResponse,
    summary="駅の混雑タイムライン (一括)",
    description="駅名から座標と周辺会場を検索し、イベント情報と駅周辺の代表画像を並行して取得した上で、"
    "会場ごとの混雑度と時間帯タイムラインを返します。同じ駅・日付の結果は5分間キャッシュされます。",
    response_description="会場一覧、代表画像、乗降客数、採点済みイベント、タイムライン",
)
async def get_congestion(req: CongestionRequest):
    cached = timeline_cache.get(req.station_id, req.station_name, req.date)
    if cached is not None:
        return cached

    service = registry.get_service()
    report = await service.analyze(req.station_id, req.station_name, req.date)

    response = CongestionResponse(
        station_id=report.station_id,
        station_name=report.station_name,
        target_date=report.target_date,
        coordinates=CoordinatesItem(lat=report.coordinates.lat, lon=report.coordinates.lon),
        image_url=report.image_url,
        venues=[
            VenueItem(id=v.id, name=v.name, address=v.address, category=v.category)
            for v in report.venues
        ],
        **serialize_result(report.result),
    )
    if report.result.profile.is_default:
        logger.info("Ridership default used for %s (%s)", req.station_name, req.station_id)

    timeline_cache.set(req.station_id, req.station_name, req.date, response)
    return response
