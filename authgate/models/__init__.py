"""
@PURPOSE: 数据库模型包
@OUTLINE:
  - user: 用户凭据表
  - point: points 资源表
"""
