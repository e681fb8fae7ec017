"""
@PURPOSE: 核心模块包，包含配置、数据库、安全等基础设施
@OUTLINE:
  - config: 应用配置
  - logger_setup: loguru 日志配置
  - database: 数据库连接
  - security: 密码哈希
  - session_store: 会话存储(Redis / 内存)
  - health: 健康检查
"""
