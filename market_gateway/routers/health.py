"""健康检查路由"""

import time

from fastapi import APIRouter

from market_gateway import __version__
from market_gateway.layers.cache import get_cache_layer

router = APIRouter(tags=["健康检查"])


@router.get("/health")
async def health():
    """服务健康检查"""
    cache_health = await get_cache_layer().stats()
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": int(time.time()),
        "service": "Market Data Gateway",
        "cache": cache_health,
    }


@router.get("/healthz")
async def healthz():
    """存活检查"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """就绪检查"""
    return {"ready": True}
