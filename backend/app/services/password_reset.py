"""
密码重置服务 (Password Reset Service)

一次性重置令牌的签发、校验与消费：
    - 未知邮箱同样返回成功，不暴露账户是否存在
    - 新令牌签发前删除该用户所有未使用的旧令牌
    - 令牌有效期 1 小时，使用后立即失效
    - 每个账户每小时最多申请 3 次

数据库只保存令牌的 SHA-256 摘要，明文令牌只通过邮件发给用户。
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ExpiredTokenError, InvalidTokenError, TokenAlreadyUsedError
from app.core.security import generate_secure_token, hash_password, hash_token, token_expiration
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User

logger = logging.getLogger(__name__)

# 未知邮箱时返回的占位值
UNKNOWN_ACCOUNT_TOKEN = "token-generated"


def _aware(value: datetime) -> datetime:
    """SQLite 读回的时间不带时区，统一按 UTC 处理。"""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _is_expired(token: PasswordResetToken, now: Optional[datetime] = None) -> bool:
    return (now or datetime.now(timezone.utc)) > _aware(token.expires_at)


class PasswordResetService:
    """密码重置令牌管理。只 flush，不 commit，事务边界由路由层决定。"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find_user(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def _find_token(self, token: str) -> Optional[PasswordResetToken]:
        result = await self.db.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == hash_token(token))
        )
        return result.scalar_one_or_none()

    async def request_password_reset(self, email: str) -> str:
        """
        为邮箱签发重置令牌 (Issue Reset Token)

        Returns:
            str: 明文令牌；邮箱未注册时返回占位值，数据库不做任何写入
        """
        user = await self._find_user(email)
        if user is None:
            # 与正常路径耗时一致
            generate_secure_token()
            logger.info("Password reset requested for unknown account")
            return UNKNOWN_ACCOUNT_TOKEN

        token = generate_secure_token(32)
        await self.db.execute(
            delete(PasswordResetToken).where(
                PasswordResetToken.user_id == user.id,
                PasswordResetToken.used.is_(False),
            )
        )
        self.db.add(PasswordResetToken(
            token=hash_token(token),
            user_id=user.id,
            expires_at=token_expiration(settings.password_reset_token_ttl_hours),
        ))
        await self.db.flush()
        logger.info("Password reset token issued for user %s", user.id)
        return token

    async def validate_reset_token(self, token: str) -> bool:
        record = await self._find_token(token)
        return record is not None and not record.used and not _is_expired(record)

    async def get_user_email_from_token(self, token: str) -> Optional[str]:
        """令牌有效时返回对应用户邮箱，否则 None。"""
        record = await self._find_token(token)
        if record is None or record.used or _is_expired(record):
            return None
        user = await self.db.get(User, record.user_id)
        return user.email if user is not None else None

    async def reset_password(self, token: str, new_password: str) -> int:
        """
        使用令牌重置密码 (Reset Password)

        Returns:
            int: 被重置密码的用户 ID

        Raises:
            InvalidTokenError: 令牌不存在
            TokenAlreadyUsedError: 令牌已被使用
            ExpiredTokenError: 令牌已过期
        """
        record = await self._find_token(token)
        if record is None:
            raise InvalidTokenError()
        if record.used:
            raise TokenAlreadyUsedError()
        if _is_expired(record):
            raise ExpiredTokenError()

        user = await self.db.get(User, record.user_id)
        if user is None:
            raise InvalidTokenError()

        # 密码与令牌状态在同一事务内更新
        user.hashed_password = hash_password(new_password)
        record.used = True
        await self.db.flush()
        logger.info("Password reset for user %s", user.id)
        return user.id

    async def can_request_reset(self, email: str) -> bool:
        """最近一小时内申请次数是否低于上限；未知邮箱始终允许。"""
        user = await self._find_user(email)
        if user is None:
            return True
        since = datetime.now(timezone.utc) - timedelta(hours=1)
        result = await self.db.execute(
            select(func.count(PasswordResetToken.id)).where(
                PasswordResetToken.user_id == user.id,
                PasswordResetToken.created_at >= since,
            )
        )
        return (result.scalar() or 0) < settings.password_reset_max_per_hour

    async def cleanup_expired_tokens(self) -> int:
        """删除所有已过期的令牌，返回删除数量。"""
        result = await self.db.execute(
            delete(PasswordResetToken).where(PasswordResetToken.expires_at < datetime.now(timezone.utc))
        )
        await self.db.flush()
        return result.rowcount or 0


def mask_email(email: str) -> str:
    """保留前两个字符和域名，例如 jo***@example.com。"""
    local, sep, domain = email.partition("@")
    if not sep or len(local) < 2:
        return email
    return f"{local[:2]}***@{domain}"
