"""
缓存后端连接管理
网关唯一的共享可变资源是 Redis；连接失败时 get_redis() 返回 None，
缓存层据此降级为进程内存模式，不阻断启动。
"""

import logging
from typing import Optional

from redis.asyncio import Redis, ConnectionPool

from market_gateway.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


def redis_endpoint() -> str:
    """用于日志与健康检查的 Redis 地址（不含密码）"""
    return f"{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"


async def init_redis() -> bool:
    """建立 Redis 连接池并 ping 一次，返回缓存是否运行在共享模式"""
    global _redis_client
    if not settings.REDIS_ENABLED:
        logger.info("Redis 未启用，缓存使用进程内存模式")
        return False
    pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=10,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()
    except Exception as exc:
        logger.warning(f"⚠️ Redis 连接失败 {redis_endpoint()}，缓存降级为进程内存模式: {exc}")
        await client.aclose()
        await pool.disconnect()
        return False
    _redis_client = client
    logger.info(f"✅ Redis 连接成功: {redis_endpoint()}")
    return True


async def close_connections():
    """关闭 Redis 客户端及其连接池"""
    global _redis_client
    if _redis_client is None:
        return
    await _redis_client.aclose()
    await _redis_client.connection_pool.disconnect()
    _redis_client = None
    logger.info("Redis 连接已关闭")


def get_redis() -> Optional[Redis]:
    """获取 Redis 客户端（未连接或降级时为 None）"""
    return _redis_client
