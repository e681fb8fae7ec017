"""
@PURPOSE: points 资源表模型
@OUTLINE:
  - class Point: 资源记录,内容为不透明 JSON
  - Point.to_dict(): 转换为对外输出的字典
@DEPENDENCIES:
  - 内部: authgate.core.database
  - 外部: sqlalchemy
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column

from authgate.core.database import Base


class Point(Base):
    """资源记录,与用户身份无关联."""

    __tablename__ = "points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_dict(self) -> dict[str, Any]:
        """转换为对外输出的字典,行 id 覆盖 data 中的同名键."""
        return {**(self.data or {}), "id": self.id}

    def __repr__(self) -> str:
        return f"<Point(id={self.id})>"
