"""
@PURPOSE: 应用配置管理,使用 Pydantic Settings 加载环境变量
@OUTLINE:
  - class Settings: 应用配置类,从环境变量或 .env 文件加载
  - get_settings(): 获取配置单例
@DEPENDENCIES:
  - 外部: pydantic, pydantic_settings, functools
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置类."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 数据库配置
    postgres_user: str = "authgate"
    postgres_password: str = "authgate_password"
    postgres_db: str = "authgate_db"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    # 直接指定连接 URL 时优先使用(例如测试用的 sqlite+aiosqlite)
    database_url_override: str | None = None

    @property
    def database_url(self) -> str:
        """构建数据库连接 URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis 配置
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    @property
    def redis_url(self) -> str:
        """构建 Redis 连接 URL."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # 会话配置
    session_backend: Literal["redis", "memory"] = "redis"
    session_secret: str = "change-this-session-secret-in-production"
    session_cookie_name: str = "authgate.sid"
    session_ttl_seconds: int = Field(default=86400, gt=0)
    session_cookie_secure: bool = False
    session_cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # 密码哈希配置
    bcrypt_rounds: int = 10

    # HTTP 配置
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])
    login_success_redirect: str = "/"
    login_failure_redirect: str = "/login"
    # /points 是否要求已登录会话(默认开放,与现有行为一致)
    points_require_auth: bool = False

    # 服务配置
    authgate_host: str = "127.0.0.1"  # nosec B104 - 默认只监听本地
    authgate_port: int = 3000
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        """bcrypt 仅支持 4-31 轮."""
        if not 4 <= value <= 31:
            raise ValueError("bcrypt_rounds 必须在 4 到 31 之间")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"无效的日志级别: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    """获取配置单例."""
    return Settings()
