"""
@PURPOSE: points 资源路由
@OUTLINE:
  - GET /points: 返回全部资源
  - require_points_access(): 按配置决定是否要求已登录会话
@GOTCHAS:
  - 默认不检查会话(points_require_auth=False)，与现有对外行为一致
@DEPENDENCIES:
  - 内部: authgate.auth.deps, authgate.points.repository
  - 外部: fastapi, loguru
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from authgate.auth.deps import get_app_settings, get_current_session
from authgate.auth.schemas import ErrorResponse
from authgate.auth.session import Session
from authgate.core.config import Settings
from authgate.errors import AuthenticationRequiredError, ResourceError

from .repository import PointsRepository

router = APIRouter(tags=["资源"])


def get_points_repository(request: Request) -> PointsRepository:
    """获取应用级资源仓储."""
    return request.app.state.points_repository


async def require_points_access(
    settings: Annotated[Settings, Depends(get_app_settings)],
    session: Annotated[Session | None, Depends(get_current_session)],
) -> None:
    """开启 points_require_auth 时要求已登录会话."""
    if settings.points_require_auth and session is None:
        raise AuthenticationRequiredError("需要登录")


@router.get(
    "/points",
    dependencies=[Depends(require_points_access)],
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_points(
    repository: Annotated[PointsRepository, Depends(get_points_repository)],
) -> Any:
    """获取全部 points 资源."""
    try:
        return await repository.list_points()
    except ResourceError as e:
        logger.error(f"获取 points 失败: error={e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal server error").model_dump(),
        )
