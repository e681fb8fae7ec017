"""
@PURPOSE: FastAPI 应用入口，认证网关主程序
@OUTLINE:
  - create_app(): FastAPI 应用工厂,组装仓储、会话存储、会话管理器
  - lifespan(): 应用生命周期管理(建表、释放连接)
  - GET /: 欢迎信息
  - GET /health, /health/readiness: 健康检查
@GOTCHAS:
  - 会话管理器、注册服务、仓储都挂在 app.state 上，通过依赖注入获取，没有全局单例
  - 应用启动时会自动创建数据库表
@DEPENDENCIES:
  - 内部: authgate.core.*, authgate.auth.*, authgate.points.*
  - 外部: fastapi, uvicorn, loguru
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from authgate import __version__
from authgate.auth.repository import CredentialRepository, SqlCredentialRepository
from authgate.auth.router import router as auth_router
from authgate.auth.schemas import ErrorResponse
from authgate.auth.service import CredentialVerifier, RegistrationService
from authgate.auth.session import SessionManager
from authgate.core.config import Settings, get_settings
from authgate.core.database import build_engine, build_session_maker, close_db, init_db
from authgate.core.health import HealthChecker
from authgate.core.logger_setup import setup_logger
from authgate.core.security import build_password_hasher
from authgate.core.session_store import SessionStore, build_session_store, close_redis
from authgate.errors import AuthenticationRequiredError
from authgate.points.repository import PointsRepository, SqlPointsRepository
from authgate.points.router import router as points_router

WELCOME_MESSAGE = "Welcome to the authentication system!"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理.

    启动时: 配置日志并初始化数据库表
    关闭时: 释放数据库和 Redis 连接
    """
    settings: Settings = app.state.settings
    setup_logger(settings.log_level)

    logger.info("正在启动认证网关...")
    await init_db(app.state.engine)
    logger.info("数据库初始化完成")
    logger.info(f"认证网关启动成功: session_backend={settings.session_backend}")

    yield

    logger.info("清理数据库连接...")
    await close_db(app.state.engine)

    logger.info("清理 Redis 连接...")
    await close_redis()

    logger.info("认证网关已关闭")


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    credential_repository: CredentialRepository | None = None,
    points_repository: PointsRepository | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """创建 FastAPI 应用.

    Args:
        settings: 应用配置,默认从环境变量加载
        engine: 数据库引擎,默认按配置创建
        credential_repository: 凭据仓储,默认使用 SQLAlchemy 实现
        points_repository: 资源仓储,默认使用 SQLAlchemy 实现
        session_store: 会话存储,默认按 session_backend 选择

    Returns:
        FastAPI: 应用实例
    """
    settings = settings or get_settings()
    engine = engine or build_engine(settings)
    session_maker = build_session_maker(engine)

    credential_repository = credential_repository or SqlCredentialRepository(session_maker)
    points_repository = points_repository or SqlPointsRepository(session_maker)
    session_store = session_store or build_session_store(settings)

    hasher = build_password_hasher(settings)
    verifier = CredentialVerifier(credential_repository, hasher)
    session_manager = SessionManager(
        session_store,
        verifier,
        secret=settings.session_secret,
        ttl_seconds=settings.session_ttl_seconds,
    )

    app = FastAPI(
        title="authgate",
        description="基于服务端会话的用户名/密码认证网关",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_manager = session_manager
    app.state.registration_service = RegistrationService(credential_repository, hasher)
    app.state.points_repository = points_repository
    app.state.health_checker = HealthChecker(engine, session_store)

    # CORS 中间件(允许携带 Cookie)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthenticationRequiredError)
    async def authentication_required_handler(
        request: Request, exc: AuthenticationRequiredError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(error="Authentication required").model_dump(),
        )

    # 注册路由
    app.include_router(auth_router)
    app.include_router(points_router)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """欢迎信息."""
        return WELCOME_MESSAGE

    # ==================== 健康检查端点 ====================

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """轻量级健康检查端点 (Liveness Probe).

        仅检查进程是否存活，不检查依赖服务。
        """
        return {"status": "ok", "service": "authgate"}

    @app.get("/health/readiness")
    async def readiness_check(request: Request):
        """深度健康检查端点 (Readiness Probe).

        HTTP Status Codes:
            200: 所有依赖服务正常 (healthy)
            503: 任一依赖服务异常 (unhealthy)
        """
        health_status = await request.app.state.health_checker.check_overall()
        if health_status.status == "healthy":
            return health_status
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status.model_dump(mode="json"),
        )

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authgate.main:create_app",
        factory=True,
        host=settings.authgate_host,
        port=settings.authgate_port,
        reload=settings.debug,
    )
