"""
@PURPOSE: 认证模块包，提供用户注册、登录校验和会话管理
@OUTLINE:
  - repository: 凭据仓储
  - service: 凭据校验与注册
  - session: 会话管理
  - router: 认证路由
  - schemas: 认证相关的 Pydantic 模型
  - deps: 认证相关的依赖注入
"""
