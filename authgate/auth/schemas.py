"""
@PURPOSE: 认证相关的 Pydantic 模型定义
@OUTLINE:
  - class Credentials: 登录/注册请求体
  - class MessageResponse: 通用消息响应
  - class ErrorResponse: 通用错误响应
@GOTCHAS:
  - 密码长度按 UTF-8 字节数限制(bcrypt 上限 72 字节)，不是字符数
@DEPENDENCIES:
  - 内部: authgate.core.security
  - 外部: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from authgate.core.security import BCRYPT_MAX_PASSWORD_BYTES


class Credentials(BaseModel):
    """登录/注册请求体,支持表单或 JSON."""

    username: str = Field(..., min_length=1, max_length=50, description="用户名")
    password: str = Field(..., min_length=1, repr=False, description="密码")

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError("密码不能超过 72 字节")
        return value


class MessageResponse(BaseModel):
    """通用消息响应."""

    message: str = Field(..., description="消息内容")


class ErrorResponse(BaseModel):
    """通用错误响应."""

    error: str = Field(..., description="错误信息")
