"""
@PURPOSE: 服务端会话管理,负责登录建立会话、解析会话、登出销毁会话
@OUTLINE:
  - class Session: 会话对象(session_id, principal, 创建/过期时间)
  - class SessionManager: 会话管理器
    - serialize(): 主体 -> 存储内容(只含 user_id 和 username)
    - deserialize(): 存储内容 -> 主体,任何异常都视为匿名
    - login(): 校验凭据并创建新会话
    - resolve(): 根据 session_id 获取会话
    - logout(): 销毁会话(幂等)
    - is_authenticated(): 会话是否有效
    - sign_session_id() / unsign_session_id(): Cookie 签名
@GOTCHAS:
  - 登录成功总是生成新的 session_id，并销毁请求携带的旧会话
  - 会话内容中绝不包含密码哈希
  - resolve/logout 不向请求处理抛出存储异常
@DEPENDENCIES:
  - 内部: authgate.auth.service, authgate.core.session_store, authgate.errors
  - 外部: itsdangerous, loguru
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from itsdangerous import BadSignature, URLSafeSerializer
from loguru import logger

from authgate.core.logger_setup import mask_session_id
from authgate.core.session_store import SessionStore
from authgate.errors import InternalAuthError

from .service import CredentialVerifier, Principal

SESSION_COOKIE_SALT = "authgate.session.v1"


@dataclass(frozen=True)
class Session:
    """已认证会话."""

    session_id: str
    principal: Principal
    created_at: datetime
    expires_at: datetime


class SessionManager:
    """会话管理器."""

    def __init__(
        self,
        store: SessionStore,
        verifier: CredentialVerifier,
        *,
        secret: str,
        ttl_seconds: int = 86400,
    ) -> None:
        """初始化会话管理器.

        Args:
            store: 会话存储
            verifier: 凭据校验器
            secret: Cookie 签名密钥
            ttl_seconds: 会话有效期(秒)
        """
        if not secret:
            raise ValueError("会话签名密钥不能为空")
        self.store = store
        self.verifier = verifier
        self.ttl_seconds = ttl_seconds
        self._signer = URLSafeSerializer(secret, salt=SESSION_COOKIE_SALT)

    # ==================== 序列化 ====================

    def serialize(self, principal: Principal, *, created_at: datetime | None = None) -> str:
        """将主体序列化为会话存储内容."""
        created_at = created_at or datetime.now(UTC)
        return json.dumps(
            {
                "user_id": principal.user_id,
                "username": principal.username,
                "created_at": created_at.isoformat(),
            }
        )

    def deserialize(self, blob: str | bytes | None) -> Principal | None:
        """反序列化会话存储内容,格式错误返回 None."""
        data = self._load(blob)
        if data is None:
            return None
        return _principal_from(data)

    def _load(self, blob: str | bytes | None) -> dict[str, Any] | None:
        if not blob:
            return None
        try:
            data = json.loads(blob)
        except (TypeError, ValueError):
            logger.warning("会话内容无法解析,视为匿名")
            return None
        if not isinstance(data, dict):
            return None
        return data

    # ==================== 会话生命周期 ====================

    async def login(
        self,
        username: str,
        password: str,
        *,
        previous_session_id: str | None = None,
    ) -> Session | None:
        """校验凭据并建立新会话.

        Args:
            username: 用户名
            password: 明文密码
            previous_session_id: 请求当前携带的会话 ID,登录成功后销毁

        Returns:
            Session | None: 登录成功返回新会话,凭据错误返回 None

        Raises:
            InternalAuthError: 校验失败或会话存储失败
        """
        principal = await self.verifier.verify_credentials(username, password)
        if principal is None:
            return None

        if previous_session_id:
            await self.logout(previous_session_id)

        now = datetime.now(UTC)
        session = Session(
            session_id=secrets.token_urlsafe(32),
            principal=principal,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        try:
            await self.store.set(
                session.session_id,
                self.serialize(principal, created_at=now),
                self.ttl_seconds,
            )
        except Exception as e:
            logger.error(f"创建会话失败: username={principal.username}, error={type(e).__name__}")
            raise InternalAuthError("创建会话失败") from e

        logger.info(
            f"创建会话成功: username={principal.username}, "
            f"session={mask_session_id(session.session_id)}, ttl={self.ttl_seconds}s"
        )
        return session

    async def resolve(self, session_id: str | None) -> Session | None:
        """根据会话 ID 获取会话,无效或存储异常时返回 None."""
        if not session_id:
            return None
        try:
            blob = await self.store.get(session_id)
        except Exception as e:
            logger.error(f"读取会话失败: session={mask_session_id(session_id)}, error={type(e).__name__}")
            return None

        data = self._load(blob)
        if data is None:
            return None
        principal = _principal_from(data)
        if principal is None:
            return None

        created_at = _parse_time(data.get("created_at")) or datetime.now(UTC)
        return Session(
            session_id=session_id,
            principal=principal,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=self.ttl_seconds),
        )

    async def logout(self, session_id: str | None) -> None:
        """销毁会话,对匿名或已失效的会话同样成功."""
        if not session_id:
            return
        try:
            await self.store.delete(session_id)
        except Exception as e:
            logger.error(f"销毁会话失败: session={mask_session_id(session_id)}, error={type(e).__name__}")
            return
        logger.info(f"会话已销毁: session={mask_session_id(session_id)}")

    async def is_authenticated(self, session_id: str | None) -> bool:
        return await self.resolve(session_id) is not None

    # ==================== Cookie 签名 ====================

    def sign_session_id(self, session_id: str) -> str:
        """生成写入 Cookie 的签名值."""
        return self._signer.dumps(session_id)

    def unsign_session_id(self, cookie_value: str | None) -> str | None:
        """校验 Cookie 签名,失败返回 None."""
        if not cookie_value:
            return None
        try:
            session_id = self._signer.loads(cookie_value)
        except BadSignature:
            logger.warning("会话 Cookie 签名无效,视为匿名")
            return None
        if not isinstance(session_id, str) or not session_id:
            return None
        return session_id


def _principal_from(data: dict[str, Any]) -> Principal | None:
    user_id = data.get("user_id")
    username = data.get("username")
    if not isinstance(user_id, str) or not isinstance(username, str):
        return None
    if not user_id.strip() or not username.strip():
        return None
    return Principal(user_id=user_id, username=username)


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
