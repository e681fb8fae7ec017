"""
@PURPOSE: 认证路由，提供登录、注册、登出 API
@OUTLINE:
  - POST /login: 用户登录,成功后写入会话 Cookie 并重定向
  - POST /register: 用户注册
  - GET /logout: 用户登出(幂等)
@GOTCHAS:
  - 用户不存在与密码错误返回相同的重定向
  - 错误响应只包含通用信息，不透出仓储或哈希错误细节
@DEPENDENCIES:
  - 内部: authgate.auth.deps, authgate.auth.service, authgate.auth.session
  - 外部: fastapi
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from authgate.core.config import Settings
from authgate.errors import IdentityConflictError, InternalAuthError

from .deps import (
    get_app_settings,
    get_registration_service,
    get_session_id,
    get_session_manager,
    read_credentials,
)
from .schemas import ErrorResponse, MessageResponse
from .service import RegistrationService
from .session import SessionManager

router = APIRouter(tags=["认证"])

INTERNAL_ERROR = "Internal server error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post("/login")
async def login(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    session_id: Annotated[str | None, Depends(get_session_id)],
):
    """用户登录.

    凭据校验通过后创建新的服务端会话,并通过签名 Cookie 下发会话 ID。
    请求携带的旧会话会被销毁。
    """
    failure = RedirectResponse(settings.login_failure_redirect, status_code=status.HTTP_303_SEE_OTHER)

    credentials = await read_credentials(request)
    if credentials is None:
        return failure

    try:
        session = await session_manager.login(
            credentials.username,
            credentials.password,
            previous_session_id=session_id,
        )
    except InternalAuthError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

    if session is None:
        return failure

    response = RedirectResponse(settings.login_success_redirect, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_manager.sign_session_id(session.session_id),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )
    return response


@router.post(
    "/register",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def register(
    request: Request,
    registration_service: Annotated[RegistrationService, Depends(get_registration_service)],
):
    """用户注册.

    Returns:
        200: 注册成功
        400: 缺少字段或用户名已存在
        500: 内部错误
    """
    credentials = await read_credentials(request)
    if credentials is None:
        return _error(status.HTTP_400_BAD_REQUEST, "Username and password are required")

    try:
        await registration_service.register(credentials.username, credentials.password)
    except IdentityConflictError:
        return _error(status.HTTP_400_BAD_REQUEST, "User already exists")
    except InternalAuthError:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

    return MessageResponse(message="User registered successfully")


@router.get("/logout", response_model=MessageResponse)
async def logout(
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
    session_id: Annotated[str | None, Depends(get_session_id)],
):
    """用户登出,销毁服务端会话并清除 Cookie."""
    await session_manager.logout(session_id)

    response = JSONResponse(content=MessageResponse(message="Logged out successfully").model_dump())
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )
    return response
