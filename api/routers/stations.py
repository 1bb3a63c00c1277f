# -*- coding: utf-8 -*-
import asyncio
from typing import List

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import RailwayItem, StationItem

router = APIRouter()


@router.get(
    "/railways",
    response_model=List[RailwayItem],
    summary="路線一覧の取得",
    description="ODPT API から JR東日本の路線一覧を取得し、表示名順に並べて返します。",
    response_description="路線一覧 (label: 表示名, value: 路線ID, color, code)",
)
async def get_railways():
    odpt = registry.get_odpt()
    return await asyncio.to_thread(odpt.fetch_railways)


@router.get(
    "/stations",
    response_model=List[StationItem],
    summary="路線の駅一覧の取得",
    description="指定した路線ID (例: odpt.Railway:JR-East.Yamanote) の駅一覧を "
    "ODPT API から取得し、表示名順に並べて返します。",
    response_description="駅一覧 (label: 駅名, value: 駅ID)",
)
async def get_stations(
    railway_id: str = Query("", alias="railwayId", description="ODPT 路線ID"),
):
    if not railway_id:
        raise HTTPException(status_code=400, detail="railwayId is required")
    odpt = registry.get_odpt()
    return await asyncio.to_thread(odpt.fetch_stations, railway_id)
