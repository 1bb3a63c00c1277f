# -*- coding: utf-8 -*-
"""
aiteru FastAPI Application
"""
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from aiteru.errors import AiteruError
from api.cache import invalidate_timeline_cache
from api.dependencies import registry
from api.rate_limit import create_backend, rate_limit_bucket
from api.routers import congestion, events, favorites, stations, venues

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """外部APIを呼ぶエンドポイントを IP ごとに分あたり N 回に制限する"""
    def __init__(self, app, requests_per_minute: int = 20):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.backend = create_backend()

    async def dispatch(self, request: Request, call_next):
        bucket = rate_limit_bucket(request.url.path)
        if bucket is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        if await self.backend.hit(f"{bucket}:{client_ip}", self.requests_per_minute, window=60):
            return JSONResponse(
                status_code=429,
                content={"detail": "リクエストが多すぎます。しばらくしてから再度お試しください。"},
            )
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry.load()
    yield


app = FastAPI(title="aiteru", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AiteruError)
async def aiteru_error_handler(request: Request, exc: AiteruError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.detail, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "20")),
)

app.include_router(stations.router, prefix="/api", tags=["stations"])
app.include_router(venues.router, prefix="/api", tags=["venues"])
app.include_router(events.router, prefix="/api", tags=["events"])
app.include_router(congestion.router, prefix="/api", tags=["congestion"])
app.include_router(favorites.router, prefix="/api", tags=["favorites"])


@app.get(
    "/health",
    summary="サービス状態の確認",
    description="パイプラインの読み込み状況と乗降客数データの取得元を返します。",
    response_description="status(healthy/degraded/unavailable), version, survey_stations, survey_source",
)
async def health():
    try:
        pipeline = registry.get_pipeline()
    except RuntimeError:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "Pipeline not loaded"},
        )
    survey_stations = len(pipeline.ridership)
    return {
        # 乗降客数データが無くても既定値で動くので degraded 扱い
        "status": "healthy" if survey_stations > 0 else "degraded",
        "version": app.version,
        "survey_stations": survey_stations,
        "survey_source": registry.survey_source,
    }


@app.post(
    "/api/reload",
    summary="データ再読み込み",
    description="乗降客数データ (ODPT または CSV スナップショット) を再取得し、"
               "タイムラインと路線・駅一覧のキャッシュも無効化します。",
    response_description="再読み込みの成否、取得元、駅数",
)
async def reload_data():
    try:
        with registry.lock:
            if registry.odpt is not None:
                registry.odpt.catalogue_cache.invalidate()
            registry.load()
            invalidate_timeline_cache()
        pipeline = registry.get_pipeline()
        return {
            "status": "ok",
            "message": "データを再読み込みしました。",
            "survey_source": registry.survey_source,
            "survey_stations": len(pipeline.ridership),
        }
    except Exception as e:
        logging.exception("Data reload failed")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "detail": "データの再読み込みに失敗しました", "error": str(e)},
        )
