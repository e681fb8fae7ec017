"""
@PURPOSE: 会话存储后端,保存 session_id -> 序列化主体 的映射
@OUTLINE:
  - class SessionStore: 会话存储协议
  - class RedisSessionStore: Redis 实现(生产环境)
  - class MemorySessionStore: 进程内实现(测试与单进程开发)
  - get_redis() / close_redis(): Redis 连接池管理
  - build_session_store(): 根据配置选择后端
@GOTCHAS:
  - 会话过期由存储层 TTL 控制，过期后 get() 返回 None
  - 所有并发请求共享同一个存储实例
@DEPENDENCIES:
  - 内部: authgate.core.config
  - 外部: redis, loguru
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as redis
from loguru import logger

from .config import Settings

# Redis 连接池
_redis_pool: redis.ConnectionPool | None = None


def get_redis(settings: Settings) -> redis.Redis:
    """获取 Redis 连接.

    Args:
        settings: 应用配置

    Returns:
        redis.Redis: Redis 客户端实例
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=20,
        )
    return redis.Redis(connection_pool=_redis_pool)


async def close_redis() -> None:
    """关闭 Redis 连接池."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None


class SessionStore(Protocol):
    """会话存储协议."""

    async def get(self, session_id: str) -> str | None: ...

    async def set(self, session_id: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...

    async def ping(self) -> bool: ...


class RedisSessionStore:
    """基于 Redis 的会话存储."""

    SESSION_PREFIX = "session:"  # session:{session_id} -> 序列化主体

    def __init__(self, redis_client: redis.Redis) -> None:
        """初始化会话存储.

        Args:
            redis_client: Redis 客户端实例
        """
        self.redis = redis_client

    def _key(self, session_id: str) -> str:
        return f"{self.SESSION_PREFIX}{session_id}"

    async def get(self, session_id: str) -> str | None:
        return await self.redis.get(self._key(session_id))

    async def set(self, session_id: str, value: str, ttl_seconds: int) -> None:
        await self.redis.setex(self._key(session_id), ttl_seconds, value)

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))

    async def ping(self) -> bool:
        return bool(await self.redis.ping())


class MemorySessionStore:
    """进程内会话存储,值带过期时间."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._items: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get(self, session_id: str) -> str | None:
        async with self._lock:
            item = self._items.get(session_id)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= self._clock():
                del self._items[session_id]
                return None
            return value

    async def set(self, session_id: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds 必须大于 0")
        async with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._items[session_id] = (value, now + ttl_seconds)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._items.pop(session_id, None)

    def _purge_expired(self, now: float) -> None:
        # 过期但未再被读取的会话在写入时统一清理
        expired = [key for key, (_, expires_at) in self._items.items() if expires_at <= now]
        for key in expired:
            del self._items[key]

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._items)


def build_session_store(settings: Settings) -> SessionStore:
    """根据配置创建会话存储.

    Args:
        settings: 应用配置

    Returns:
        SessionStore: 会话存储实例
    """
    if settings.session_backend == "memory":
        logger.warning("使用进程内会话存储,会话不会在多进程间共享")
        return MemorySessionStore()
    return RedisSessionStore(get_redis(settings))
