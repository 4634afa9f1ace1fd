"""
数据模型包 (Data Models Package)

集中导出所有 SQLAlchemy ORM 模型：用户、文章、评论、站点设置、密码重置令牌和审计日志。

Centrally exports all SQLAlchemy ORM models: users, posts, comments, site
settings, password reset tokens and audit logs.
"""
from app.models.user import User
from app.models.post import Post
from app.models.comment import Comment
from app.models.setting import Setting
from app.models.password_reset_token import PasswordResetToken
from app.models.audit_log import AuditLog

# 导出所有模型类供外部模块使用 (Export all model classes for external modules)
__all__ = [
    "User", "Post", "Comment", "Setting", "PasswordResetToken", "AuditLog",
]
