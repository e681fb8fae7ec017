"""
@PURPOSE: 定义认证网关的自定义异常
@OUTLINE:
  - AuthError: 认证相关异常基类
  - IdentityConflictError: 注册时用户名已存在
  - InternalAuthError: 内部错误(哈希失败、仓储失败、会话存储失败)
  - PasswordHashingError: 密码哈希或比对失败
  - RepositoryError: 仓储访问失败
  - DuplicateIdentityError: 仓储唯一约束冲突
  - ResourceError: 资源仓储访问失败
  - AuthenticationRequiredError: 访问受保护资源时未登录
@GOTCHAS:
  - 用户不存在与密码错误都不是异常，校验器统一返回 None
  - 异常消息中不得包含明文密码或哈希
@DEPENDENCIES:
  - 外部: 无
"""

from __future__ import annotations


class AuthError(Exception):
    """认证相关异常基类."""


class IdentityConflictError(AuthError):
    """用户名已被注册."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"用户名已存在: {username}")


class InternalAuthError(AuthError):
    """认证流程内部错误,对外只返回通用错误信息."""


class PasswordHashingError(InternalAuthError):
    """密码哈希或比对失败(输入格式错误或后端异常),区别于密码不匹配."""


class RepositoryError(Exception):
    """仓储访问失败."""


class DuplicateIdentityError(RepositoryError):
    """插入时违反用户名唯一约束."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"用户名唯一约束冲突: {username}")


class ResourceError(RepositoryError):
    """资源仓储访问失败."""


class AuthenticationRequiredError(AuthError):
    """访问需要已登录会话的资源时未登录."""
