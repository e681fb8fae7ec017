"""
@PURPOSE: 提供深度健康检查功能,检测数据库和会话存储的运行状态
@OUTLINE:
  - class HealthStatus: 健康状态模型
  - class CheckResult: 单项检查结果模型
  - class HealthChecker: 健康检查管理器
    - check_database(): 检测数据库连接
    - check_session_store(): 检测会话存储
    - check_overall(): 综合健康检查
@DEPENDENCIES:
  - 内部: authgate.core.session_store
  - 外部: sqlalchemy, pydantic, loguru
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from .session_store import SessionStore


class CheckResult(BaseModel):
    """单项检查结果."""

    status: bool
    latency_ms: float
    message: str | None = None


class HealthStatus(BaseModel):
    """综合健康状态."""

    status: Literal["healthy", "unhealthy"]
    checks: dict[str, CheckResult]
    timestamp: datetime


class HealthChecker:
    """健康检查管理器."""

    def __init__(self, engine: AsyncEngine, session_store: SessionStore) -> None:
        self.engine = engine
        self.session_store = session_store

    async def check_database(self) -> CheckResult:
        """检测数据库连接.

        执行 SELECT 1 查询来验证数据库连接是否正常。
        """
        start_time = time.time()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            latency_ms = (time.time() - start_time) * 1000

            logger.debug(f"数据库健康检查成功: latency={latency_ms:.2f}ms")
            return CheckResult(
                status=True,
                latency_ms=round(latency_ms, 2),
                message="Database connection is healthy",
            )
        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            logger.error(f"数据库健康检查失败: error={type(e).__name__}, latency={latency_ms:.2f}ms")
            return CheckResult(
                status=False,
                latency_ms=round(latency_ms, 2),
                message="Database connection failed",
            )

    async def check_session_store(self) -> CheckResult:
        """检测会话存储(Redis 执行 PING)."""
        start_time = time.time()
        try:
            ok = await self.session_store.ping()
            latency_ms = (time.time() - start_time) * 1000
        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            logger.error(f"会话存储健康检查失败: error={type(e).__name__}, latency={latency_ms:.2f}ms")
            return CheckResult(
                status=False,
                latency_ms=round(latency_ms, 2),
                message="Session store connection failed",
            )

        if not ok:
            logger.error("会话存储 PING 返回异常")
            return CheckResult(
                status=False,
                latency_ms=round(latency_ms, 2),
                message="Session store PING returned unexpected response",
            )
        return CheckResult(
            status=True,
            latency_ms=round(latency_ms, 2),
            message="Session store is healthy",
        )

    async def check_overall(self) -> HealthStatus:
        """综合健康检查.

        状态判定规则:
            - healthy: 所有依赖服务正常
            - unhealthy: 任一依赖服务异常
        """
        checks = {
            "database": await self.check_database(),
            "session_store": await self.check_session_store(),
        }

        all_healthy = all(check.status for check in checks.values())
        overall_status = "healthy" if all_healthy else "unhealthy"

        if not all_healthy:
            failed_services = [name for name, check in checks.items() if not check.status]
            logger.warning(f"健康检查失败: status={overall_status}, failed={failed_services}")

        return HealthStatus(
            status=overall_status,
            checks=checks,
            timestamp=datetime.now(UTC),
        )
