"""
文章模型 (Post Model)

评论所挂靠的文章。只保留评论审核需要的字段，文章编辑不在本服务范围内。
"""
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Post(Base):
    """文章表 (Post Table)"""
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    title: Mapped[str] = mapped_column(String(255), nullable=False)  # 标题 (Title)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)  # URL 别名 (Slug)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="published")  # draft/published
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # 作者 (Author)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )  # 创建时间 (Creation Time)
