"""
审计日志模型 (Audit Log Model)

记录后台关键操作：站点设置修改、评论审核（通过、标记垃圾、删除）、密码重置等。

Records privileged operations such as site-setting changes, comment moderation
and password resets so they can be traced back to an actor and an address.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AuditLog(Base):
    """
    审计日志表 (Audit Log Table)

    每条记录包含操作用户、操作类型、目标资源和操作详情。只追加，不修改。
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # 操作用户 ID (Operating User ID)
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # 操作类型，如 approve_comment (Action Type)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # 资源类型，如 comment, settings (Resource Type)
    resource_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 资源 ID (Resource ID)
    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # 操作详情，JSON 文本 (Operation Detail)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # 操作者 IP 地址（支持 IPv6） (IP Address)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )  # 操作时间 (Operation Time)
