"""
@PURPOSE: 安全工具模块,提供 bcrypt 密码哈希和校验
@OUTLINE:
  - class PasswordHasher: 密码哈希器
    - hash(): 生成带盐哈希
    - verify(): 校验密码
  - build_password_hasher(): 根据配置创建哈希器
@GOTCHAS:
  - bcrypt 计算是阻塞的，在线程池中执行以避免阻塞事件循环
  - 密码不匹配返回 False；哈希格式错误等内部失败抛出 PasswordHashingError
  - bcrypt 只使用前 72 字节，超长密码直接拒绝，不做截断
@DEPENDENCIES:
  - 内部: authgate.core.config, authgate.errors
  - 外部: passlib[bcrypt], asyncio
"""

from __future__ import annotations

import asyncio
from functools import partial

from passlib.context import CryptContext

from authgate.errors import PasswordHashingError

from .config import Settings

DEFAULT_BCRYPT_ROUNDS = 10
# bcrypt 只使用密码的前 72 字节
BCRYPT_MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt 密码哈希器."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        """初始化哈希器.

        Args:
            rounds: bcrypt 工作因子(log2 轮数)
        """
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__truncate_error=True,
        )

    async def hash(self, password: str) -> str:
        """生成密码哈希.

        Args:
            password: 明文密码

        Returns:
            str: 哈希后的密码

        Raises:
            PasswordHashingError: 密码为空、超过 72 字节或哈希失败
        """
        if not password:
            raise PasswordHashingError("密码为空,无法生成哈希")
        _check_length(password)
        try:
            return await self._run(self._context.hash, password)
        except (TypeError, ValueError) as e:
            raise PasswordHashingError("生成密码哈希失败") from e

    async def verify(self, password: str, hashed_password: str) -> bool:
        """验证密码是否正确.

        Args:
            password: 明文密码
            hashed_password: 哈希后的密码

        Returns:
            bool: 密码是否匹配

        Raises:
            PasswordHashingError: 密码超过 72 字节、存储的哈希无法识别或比对失败
        """
        if not hashed_password:
            raise PasswordHashingError("存储的密码哈希为空")
        _check_length(password)
        try:
            return await self._run(self._context.verify, password, hashed_password)
        except (TypeError, ValueError) as e:
            raise PasswordHashingError("密码比对失败") from e

    @staticmethod
    async def _run(func, *args):
        # 在线程池中执行,避免阻塞事件循环
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))


def _check_length(password: str) -> None:
    # verify 时 passlib 不检查长度,超长密码会被截断后比对
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise PasswordHashingError("密码超过 bcrypt 的 72 字节上限")


def build_password_hasher(settings: Settings) -> PasswordHasher:
    """根据配置创建密码哈希器."""
    return PasswordHasher(rounds=settings.bcrypt_rounds)
