"""
缓存管理路由
GET    /api/cache/stats    - 缓存统计
DELETE /api/cache/{key}    - 删除指定缓存条目
"""

from fastapi import APIRouter, Depends

from market_gateway.layers.cache import get_cache_layer
from market_gateway.routers.auth import require_user

router = APIRouter(prefix="/api/cache", tags=["缓存管理"], dependencies=[Depends(require_user)])


@router.get("/stats")
async def cache_stats():
    """获取缓存后端统计信息"""
    return await get_cache_layer().stats()


@router.delete("/{key}")
async def delete_cache_entry(key: str):
    """删除指定键的缓存条目，如 marketData_BTCUSDT_1m"""
    await get_cache_layer().delete(key)
    return {"deleted": key}
