"""
持久化端口包 (Persistence Ports)

服务层只依赖这里定义的仓储协议；SQLAlchemy 实现在同一模块中提供。
"""
from app.repositories.comments import CommentFilters, CommentRepository, SqlCommentRepository
from app.repositories.settings import SettingRepository, SqlSettingRepository

__all__ = [
    "CommentFilters", "CommentRepository", "SqlCommentRepository",
    "SettingRepository", "SqlSettingRepository",
]
