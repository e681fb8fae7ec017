"""
@PURPOSE: 凭据仓储,持久化 {用户名, 密码哈希} 记录
@OUTLINE:
  - class IdentityRecord: 仓储返回的用户凭据记录
  - class CredentialRepository: 仓储协议(按用户名查询、插入)
  - class SqlCredentialRepository: SQLAlchemy 实现
@GOTCHAS:
  - 插入时的唯一约束冲突转换为 DuplicateIdentityError，其它数据库异常转换为 RepositoryError
  - 每次调用都打开独立的 AsyncSession
@DEPENDENCIES:
  - 内部: authgate.models.user, authgate.errors
  - 外部: sqlalchemy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.errors import DuplicateIdentityError, RepositoryError
from authgate.models.user import User


@dataclass(frozen=True)
class IdentityRecord:
    """用户凭据记录."""

    user_id: str
    username: str
    hashed_password: str = field(repr=False)


class CredentialRepository(Protocol):
    """凭据仓储协议."""

    async def get_by_username(self, username: str) -> IdentityRecord | None: ...

    async def insert(self, username: str, hashed_password: str) -> IdentityRecord: ...


class SqlCredentialRepository:
    """基于 SQLAlchemy 的凭据仓储."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """初始化仓储.

        Args:
            session_maker: 异步会话工厂
        """
        self.session_maker = session_maker

    async def get_by_username(self, username: str) -> IdentityRecord | None:
        """根据用户名获取凭据记录(区分大小写).

        Raises:
            RepositoryError: 数据库访问失败
        """
        stmt = select(User).where(User.username == username)
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError("查询用户失败") from e

        if user is None:
            return None
        return _to_record(user)

    async def insert(self, username: str, hashed_password: str) -> IdentityRecord:
        """插入新的凭据记录.

        Raises:
            DuplicateIdentityError: 违反用户名唯一约束
            RepositoryError: 数据库访问失败
        """
        user = User(username=username, hashed_password=hashed_password)
        try:
            async with self.session_maker() as session:
                session.add(user)
                await session.commit()
                await session.refresh(user)
        except IntegrityError as e:
            raise DuplicateIdentityError(username) from e
        except SQLAlchemyError as e:
            raise RepositoryError("插入用户失败") from e

        return _to_record(user)


def _to_record(user: User) -> IdentityRecord:
    return IdentityRecord(
        user_id=str(user.id),
        username=user.username,
        hashed_password=user.hashed_password,
    )
