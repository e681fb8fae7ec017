"""
@PURPOSE: 认证相关的 FastAPI 依赖注入
@OUTLINE:
  - get_session_manager(): 获取应用级会话管理器
  - get_registration_service(): 获取应用级注册服务
  - get_session_id(): 从签名 Cookie 中解析会话 ID
  - get_current_session(): 获取当前会话(匿名返回 None)
  - require_session(): 要求已登录会话
  - read_credentials(): 从表单或 JSON 请求体读取凭据
@DEPENDENCIES:
  - 内部: authgate.auth.session, authgate.auth.schemas, authgate.errors
  - 外部: fastapi, starlette, pydantic
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from pydantic import ValidationError
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from authgate.core.config import Settings
from authgate.errors import AuthenticationRequiredError

from .schemas import Credentials
from .service import RegistrationService
from .session import Session, SessionManager


def get_app_settings(request: Request) -> Settings:
    """获取应用配置."""
    return request.app.state.settings


def get_session_manager(request: Request) -> SessionManager:
    """获取应用级会话管理器."""
    return request.app.state.session_manager


def get_registration_service(request: Request) -> RegistrationService:
    """获取应用级注册服务."""
    return request.app.state.registration_service


def get_session_id(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> str | None:
    """从 Cookie 中读取并校验会话 ID."""
    cookie_value = request.cookies.get(settings.session_cookie_name)
    return session_manager.unsign_session_id(cookie_value)


async def get_current_session(
    session_id: Annotated[str | None, Depends(get_session_id)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> Session | None:
    """获取当前会话,匿名请求返回 None."""
    return await session_manager.resolve(session_id)


async def require_session(
    session: Annotated[Session | None, Depends(get_current_session)],
) -> Session:
    """要求已登录会话.

    Raises:
        AuthenticationRequiredError: 未登录
    """
    if session is None:
        raise AuthenticationRequiredError("需要登录")
    return session


async def read_credentials(request: Request) -> Credentials | None:
    """从表单或 JSON 请求体读取凭据,缺失或格式错误返回 None."""
    content_type = request.headers.get("content-type", "").lower()
    try:
        if content_type.startswith("application/json"):
            payload = await request.json()
        else:
            payload = dict(await request.form())
    except (ValueError, MultiPartException, HTTPException):
        # starlette 对格式错误的 multipart 请求体抛出 HTTPException(400)
        return None

    if not isinstance(payload, dict):
        return None
    try:
        return Credentials.model_validate(payload)
    except ValidationError:
        return None
