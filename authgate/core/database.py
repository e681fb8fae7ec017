"""
@PURPOSE: 数据库连接管理，提供异步 SQLAlchemy 引擎和会话工厂
@OUTLINE:
  - class Base: 声明式基类
  - build_engine(): 根据配置创建异步引擎
  - build_session_maker(): 创建异步会话工厂
  - init_db(): 初始化数据库表
  - close_db(): 释放连接池
@GOTCHAS:
  - 仓储每次操作都从会话工厂打开独立的 AsyncSession，并发请求之间不共享会话
@DEPENDENCIES:
  - 内部: authgate.core.config
  - 外部: sqlalchemy, sqlalchemy.ext.asyncio
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import Settings


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类."""

    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """创建异步数据库引擎.

    Args:
        settings: 应用配置

    Returns:
        AsyncEngine: 异步引擎
    """
    url = settings.database_url
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    # SQLite 不使用连接池参数
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return create_async_engine(url, **options)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """创建异步会话工厂."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """初始化数据库表."""
    # 注册模型到 Base.metadata
    from authgate.models import point, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """关闭数据库连接."""
    await engine.dispose()
