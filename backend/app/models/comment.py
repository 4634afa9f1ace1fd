"""
评论模型 (Comment Model)

记录读者对文章的评论及其审核状态（PENDING/APPROVED/SPAM）。
状态流转规则见 app.services.comment_moderation。

Stores reader comments on posts together with their moderation status.
Transitions are decided by app.services.comment_moderation.
"""
from datetime import datetime

from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Comment(Base):
    """
    评论表 (Comment Table)

    新评论默认 PENDING，需管理员通过后才对公众可见；作者编辑后重新进入 PENDING。
    """
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )  # 所属文章 (Post ID)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )  # 评论作者 (Author ID)
    content: Mapped[str] = mapped_column(Text, nullable=False)  # 清洗后的内容 (Sanitized Content)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING", index=True)  # 审核状态 (Moderation Status)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )  # 创建时间 (Creation Time)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )  # 更新时间 (Update Time)
