"""
@PURPOSE: points 资源仓储
@OUTLINE:
  - class PointsRepository: 资源仓储协议
  - class SqlPointsRepository: SQLAlchemy 实现
    - list_points(): 按 id 顺序返回全部资源
@DEPENDENCIES:
  - 内部: authgate.models.point, authgate.errors
  - 外部: sqlalchemy
"""

from __future__ import annotations

from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.errors import ResourceError
from authgate.models.point import Point


class PointsRepository(Protocol):
    """资源仓储协议."""

    async def list_points(self) -> list[dict[str, Any]]: ...


class SqlPointsRepository:
    """基于 SQLAlchemy 的资源仓储."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def list_points(self) -> list[dict[str, Any]]:
        """获取全部资源.

        Raises:
            ResourceError: 数据库访问失败
        """
        stmt = select(Point).order_by(Point.id)
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                points = result.scalars().all()
        except SQLAlchemyError as e:
            raise ResourceError("查询 points 失败") from e
        return [point.to_dict() for point in points]
