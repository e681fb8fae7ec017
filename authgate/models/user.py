"""
@PURPOSE: 用户凭据数据库模型定义
@OUTLINE:
  - class User: 用户表模型,包含用户名和密码哈希
@GOTCHAS:
  - username 上的唯一约束是并发注册时唯一性的最终保证
@DEPENDENCIES:
  - 内部: authgate.core.database
  - 外部: sqlalchemy, uuid, datetime
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from authgate.core.database import Base


class User(Base):
    """用户表模型."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
