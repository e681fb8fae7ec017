"""
@PURPOSE: Pytest 配置和通用 fixtures
@OUTLINE:
  - settings: 测试配置(内存会话存储、低 bcrypt 轮数、临时 SQLite)
  - hasher / credential_repository / verifier / registration: 认证组件
  - session_store / session_manager: 会话组件
  - app_factory: 构建注入了替身的 FastAPI 应用
  - log_messages: 捕获 loguru 输出
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport
from loguru import logger

from authgate.auth.service import CredentialVerifier, RegistrationService
from authgate.auth.session import SessionManager
from authgate.core.config import Settings
from authgate.core.security import PasswordHasher
from authgate.core.session_store import MemorySessionStore
from authgate.main import create_app

from .fakes import MemoryCredentialRepository, MemoryPointsRepository

TEST_SECRET = "test-session-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url_override=f"sqlite+aiosqlite:///{tmp_path / 'authgate.db'}",
        session_backend="memory",
        session_secret=TEST_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def credential_repository() -> MemoryCredentialRepository:
    return MemoryCredentialRepository()


@pytest.fixture
def verifier(credential_repository, hasher) -> CredentialVerifier:
    return CredentialVerifier(credential_repository, hasher)


@pytest.fixture
def registration(credential_repository, hasher) -> RegistrationService:
    return RegistrationService(credential_repository, hasher)


@pytest.fixture
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def session_manager(session_store, verifier) -> SessionManager:
    return SessionManager(session_store, verifier, secret=TEST_SECRET, ttl_seconds=600)


@pytest.fixture
def points_repository() -> MemoryPointsRepository:
    return MemoryPointsRepository(
        [
            {"id": 1, "name": "Harbor", "lat": 59.91, "lng": 10.75},
            {"id": 2, "name": "Fortress", "lat": 59.90, "lng": 10.73},
        ]
    )


@pytest.fixture
def app_factory(settings, credential_repository, points_repository, session_store):
    """构建应用,返回 (app, transport)."""

    def _build(**overrides):
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        app = create_app(
            app_settings,
            credential_repository=credential_repository,
            points_repository=points_repository,
            session_store=session_store,
        )
        return app, ASGITransport(app=app)

    return _build


@pytest.fixture
def log_messages():
    """捕获测试期间的全部 loguru 日志."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)
