"""
@PURPOSE: points 资源模块
@OUTLINE:
  - repository: 资源仓储
  - router: 资源路由
"""
