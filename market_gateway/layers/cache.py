"""
Layer 2 – 缓存层
优先级：Redis（共享） → 进程内存（降级）

每个条目同时带有绝对过期与滑动过期，先到者生效：
滑动窗口只在读取时重置，绝对截止时间从写入起算、永不顺延。
"""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Optional, Protocol

from redis.asyncio import Redis

from market_gateway.config import settings
from market_gateway.db import get_redis, redis_endpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntryOptions:
    """缓存条目过期策略"""
    absolute_expiry: timedelta
    sliding_expiry: timedelta


class CacheStore(Protocol):
    """缓存后端的最小能力接口：按键读写不透明字符串"""

    async def get_string(self, key: str) -> Optional[str]:
        ...

    async def set_string(self, key: str, value: str, options: CacheEntryOptions) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


def _ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


# ── 进程内存后端 ──────────────────────────────────────────

@dataclass
class _MemoryEntry:
    value: str
    absolute_deadline: float
    sliding: float
    last_access: float


def _expired(entry: _MemoryEntry, now: float) -> bool:
    return now >= entry.absolute_deadline or now >= entry.last_access + entry.sliding


class MemoryCacheStore:
    """进程内缓存，单事件循环内读写无挂起点，天然并发安全"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, _MemoryEntry] = {}

    async def get_string(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if _expired(entry, now):
            del self._entries[key]
            return None
        entry.last_access = now
        return entry.value

    async def set_string(self, key: str, value: str, options: CacheEntryOptions) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = _MemoryEntry(
            value=value,
            absolute_deadline=now + options.absolute_expiry.total_seconds(),
            sliding=options.sliding_expiry.total_seconds(),
            last_access=now,
        )

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        """写入时顺带清掉所有已过期条目，未再读取的键也不会常驻内存"""
        stale = [k for k, e in self._entries.items() if _expired(e, now)]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug(f"清理过期缓存条目: {len(stale)} 个")

    def __len__(self) -> int:
        return len(self._entries)


# ── Redis 后端 ────────────────────────────────────────────

class RedisCacheStore:
    """
    Redis 缓存后端

    条目存为哈希 {data, absexp, sldexp}：
      absexp - 绝对过期时间点（epoch 毫秒）
      sldexp - 滑动窗口长度（毫秒）
    键的 TTL 取 min(滑动窗口, 距绝对过期的剩余时间)，每次命中时刷新。
    """

    def __init__(self, redis: Redis):
        self._redis = redis

    async def get_string(self, key: str) -> Optional[str]:
        doc = await self._redis.hgetall(key)
        if not doc or "data" not in doc:
            return None
        now_ms = int(time.time() * 1000)
        remaining = int(doc.get("absexp", 0)) - now_ms
        if remaining <= 0:
            return None
        sliding = int(doc.get("sldexp", 0))
        await self._redis.pexpire(key, min(sliding, remaining) if sliding > 0 else remaining)
        return doc["data"]

    async def set_string(self, key: str, value: str, options: CacheEntryOptions) -> None:
        absolute = _ms(options.absolute_expiry)
        sliding = _ms(options.sliding_expiry)
        now_ms = int(time.time() * 1000)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping={"data": value, "absexp": now_ms + absolute, "sldexp": sliding})
            pipe.pexpire(key, min(sliding, absolute))
            await pipe.execute()

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)


# ── 缓存层门面 ────────────────────────────────────────────

class CacheLayer:
    """
    缓存层：Redis 可用时使用 Redis，否则降级为进程内存。

    后端故障一律按未命中处理（读返回 None、写被跳过），
    缓存不可用不会让请求失败。
    """

    def __init__(self, store: Optional[CacheStore] = None):
        self._store = store
        self._memory = MemoryCacheStore()

    def _backend(self) -> CacheStore:
        if self._store is not None:
            return self._store
        redis = get_redis()
        if redis is not None:
            return RedisCacheStore(redis)
        return self._memory

    async def get_string(self, key: str) -> Optional[str]:
        try:
            return await self._backend().get_string(key)
        except Exception as exc:
            logger.warning(f"缓存读取失败，按未命中处理: {key}: {exc}")
            return None

    async def set_string(self, key: str, value: str, options: CacheEntryOptions) -> None:
        try:
            await self._backend().set_string(key, value, options)
            logger.debug(f"缓存写入: {key}")
        except Exception as exc:
            logger.warning(f"缓存写入失败，已跳过: {key}: {exc}")

    async def delete(self, key: str) -> None:
        try:
            await self._backend().delete(key)
        except Exception as exc:
            logger.warning(f"缓存删除失败: {key}: {exc}")

    async def stats(self) -> dict:
        """
        返回当前缓存后端的状态与键数量，同时作为健康检查使用

        Redis 已启用却未连上时，进程内存模式标记为 degraded。
        """
        if self._store is not None:
            return {"backend": type(self._store).__name__, "status": "healthy"}
        redis = get_redis()
        if redis is not None:
            try:
                return {
                    "backend": "redis",
                    "host": redis_endpoint(),
                    "keys": await redis.dbsize(),
                    "status": "healthy",
                }
            except Exception as exc:
                return {"backend": "redis", "status": "unhealthy", "error": str(exc)}
        status = "degraded" if settings.REDIS_ENABLED else "healthy"
        return {"backend": "memory", "keys": len(self._memory), "status": status}


# ── 模块级别单例 ──────────────────────────────────────────
_cache: Optional[CacheLayer] = None


def get_cache_layer() -> CacheLayer:
    global _cache
    if _cache is None:
        _cache = CacheLayer()
    return _cache
