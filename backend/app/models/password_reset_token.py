"""
密码重置令牌模型 (Password Reset Token Model)

一次性令牌：创建后 1 小时过期，使用后 used 置为 True，不能再次使用。
"""
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasswordResetToken(Base):
    """密码重置令牌表 (Password Reset Token Table)"""
    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)  # 随机令牌 (Opaque Token)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )  # 所属用户 (User ID)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)  # 过期时间 (Expiry)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)  # 是否已使用 (Single-use Latch)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )  # 创建时间 (Creation Time)
