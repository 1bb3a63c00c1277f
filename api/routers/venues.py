# -*- coding: utf-8 -*-
import asyncio

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import CoordinatesItem, VenueItem, VenueSearchResponse

router = APIRouter()


@router.get(
    "/search-venues",
    response_model=VenueSearchResponse,
    summary="駅周辺のイベント会場検索",
    description="駅名を座標に変換し、半径2.5km以内のホール・アリーナ・スタジアム等を検索します。"
    "除外カテゴリを取り除き、名前の前方一致で重複を除いた一覧を距離順に返します。",
    response_description="検索した駅の表示名、座標、会場一覧",
)
async def search_venues(
    station_name: str = Query("", alias="stationName", description="駅名 (例: 水道橋)"),
):
    if not station_name or len(station_name) < 2:
        raise HTTPException(
            status_code=400,
            detail="駅名(stationName)をクエリパラメータで指定してください。",
        )

    service = registry.get_service()
    coords, venues = await asyncio.to_thread(service.find_venues, station_name)

    return VenueSearchResponse(
        search_station=coords.display_name or station_name,
        coordinates=CoordinatesItem(lat=coords.lat, lon=coords.lon),
        count=len(venues),
        venues=[
            VenueItem(id=v.id, name=v.name, address=v.address, category=v.category)
            for v in venues
        ],
    )
