"""
@PURPOSE: authgate: 基于服务端会话的用户名/密码认证网关
@OUTLINE:
  - core: 配置、日志、数据库、密码哈希、会话存储、健康检查
  - auth: 凭据仓储、凭据校验、注册、会话管理与路由
  - points: points 资源仓储与路由
  - models: SQLAlchemy 模型
  - main: FastAPI 应用工厂
"""

__version__ = "1.0.0"
