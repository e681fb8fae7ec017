"""
@PURPOSE: 认证业务逻辑: 凭据校验与用户注册
@OUTLINE:
  - class Principal: 会话中保存的已认证主体(不含密码哈希)
  - class CredentialVerifier: 本地凭据校验
    - verify_credentials(): 查询用户并校验密码
  - class RegistrationService: 用户注册
    - register(): 检查用户名、生成哈希、插入记录
@GOTCHAS:
  - 用户不存在与密码错误返回相同结果(None)，不暴露用户名是否存在
  - 注册前的存在性检查只是快速路径，唯一性由仓储唯一约束保证
  - 日志中只记录用户名和结果，不记录密码或哈希
@DEPENDENCIES:
  - 内部: authgate.auth.repository, authgate.core.security, authgate.errors
  - 外部: loguru
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from loguru import logger

from authgate.core.security import PasswordHasher
from authgate.errors import (
    DuplicateIdentityError,
    IdentityConflictError,
    InternalAuthError,
    PasswordHashingError,
    RepositoryError,
)

from .repository import CredentialRepository, IdentityRecord


@dataclass(frozen=True)
class Principal:
    """已认证主体."""

    user_id: str
    username: str

    @classmethod
    def from_record(cls, record: IdentityRecord) -> Principal:
        return cls(user_id=record.user_id, username=record.username)


class CredentialVerifier:
    """本地凭据校验器."""

    def __init__(self, repository: CredentialRepository, hasher: PasswordHasher) -> None:
        """初始化校验器.

        Args:
            repository: 凭据仓储
            hasher: 密码哈希器
        """
        self.repository = repository
        self.hasher = hasher
        self._dummy_hash: str | None = None

    async def verify_credentials(self, username: str, password: str) -> Principal | None:
        """校验用户凭据.

        Args:
            username: 用户名
            password: 明文密码

        Returns:
            Principal | None: 校验通过返回主体,用户不存在或密码错误返回 None

        Raises:
            InternalAuthError: 仓储访问失败或哈希比对失败
        """
        if not username or not password:
            logger.info("登录失败: 缺少用户名或密码")
            return None

        try:
            record = await self.repository.get_by_username(username)
        except RepositoryError as e:
            logger.error(f"查询用户失败: username={username}, error={type(e).__name__}")
            raise InternalAuthError("查询用户失败") from e

        if record is None:
            # 对不存在的用户同样执行一次比对,使两种失败的耗时接近
            try:
                await self._burn_verify(password)
            except PasswordHashingError as e:
                raise InternalAuthError("密码比对失败") from e
            logger.info(f"登录失败: username={username}")
            return None

        try:
            valid = await self.hasher.verify(password, record.hashed_password)
        except PasswordHashingError as e:
            logger.error(f"密码比对失败: username={username}")
            raise InternalAuthError("密码比对失败") from e

        if not valid:
            logger.info(f"登录失败: username={username}")
            return None

        logger.info(f"登录校验通过: username={username}")
        return Principal.from_record(record)

    async def _burn_verify(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = await self.hasher.hash(secrets.token_urlsafe(16))
        await self.hasher.verify(password, self._dummy_hash)


class RegistrationService:
    """用户注册服务."""

    def __init__(self, repository: CredentialRepository, hasher: PasswordHasher) -> None:
        self.repository = repository
        self.hasher = hasher

    async def register(self, username: str, password: str) -> IdentityRecord:
        """用户注册.

        Args:
            username: 用户名
            password: 明文密码

        Returns:
            IdentityRecord: 创建的凭据记录

        Raises:
            IdentityConflictError: 用户名已存在
            InternalAuthError: 哈希或仓储失败
        """
        # 1. 检查用户名是否已存在(快速路径)
        try:
            existing = await self.repository.get_by_username(username)
        except RepositoryError as e:
            logger.error(f"查询用户失败: username={username}, error={type(e).__name__}")
            raise InternalAuthError("查询用户失败") from e

        if existing is not None:
            logger.info(f"注册失败,用户名已存在: username={username}")
            raise IdentityConflictError(username)

        # 2. 生成密码哈希
        try:
            hashed_password = await self.hasher.hash(password)
        except PasswordHashingError as e:
            logger.error(f"生成密码哈希失败: username={username}")
            raise InternalAuthError("生成密码哈希失败") from e

        # 3. 插入记录,唯一约束冲突视为用户名已存在
        try:
            record = await self.repository.insert(username, hashed_password)
        except DuplicateIdentityError as e:
            logger.warning(f"注册并发冲突,用户名已存在: username={username}")
            raise IdentityConflictError(username) from e
        except RepositoryError as e:
            logger.error(f"插入用户失败: username={username}, error={type(e).__name__}")
            raise InternalAuthError("插入用户失败") from e

        logger.info(f"用户注册成功: username={username}, id={record.user_id}")
        return record
