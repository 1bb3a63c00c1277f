# -*- coding: utf-8 -*-
"""
Favorites API Router
====================
Counts station searches and returns the most-used (railway, station) pairs
used to pre-populate the station selector.
"""
import asyncio

from fastapi import APIRouter, Query

from api.dependencies import registry
from api.schemas import FavoriteItem, FavoriteRequest, FavoritesResponse

router = APIRouter()


@router.post(
    "/favorites",
    response_model=FavoriteItem,
    summary="検索履歴の記録",
    description="路線と駅の組を1回分カウントアップします。",
    response_description="更新後の回数",
)
async def record_favorite(req: FavoriteRequest):
    ranker = registry.get_favorites()
    count = await asyncio.to_thread(ranker.record, req.railway, req.station)
    return FavoriteItem(railway=req.railway, station=req.station, count=count)


@router.get(
    "/favorites",
    response_model=FavoritesResponse,
    summary="よく使う駅の取得",
    description="検索回数の多い順に (路線, 駅) を返します。同数の場合は路線ID・駅IDの昇順。",
    response_description="上位の (路線, 駅, 回数)",
)
async def get_favorites(limit: int = Query(5, ge=1, le=50)):
    ranker = registry.get_favorites()
    entries = await asyncio.to_thread(ranker.top, limit)
    return FavoritesResponse(
        favorites=[FavoriteItem(railway=e.railway, station=e.station, count=e.count) for e in entries]
    )
