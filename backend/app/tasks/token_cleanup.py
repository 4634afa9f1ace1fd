"""
过期令牌清理任务模块。

定期删除已过期的密码重置令牌，防止令牌表无限增长。
默认每小时执行一次，可通过环境变量 TOKEN_CLEANUP_INTERVAL_SECONDS 配置。
"""
import asyncio
import logging
from typing import Optional

from app.core.database import async_session
from app.core.config import settings
from app.services.password_reset import PasswordResetService

logger = logging.getLogger(__name__)


async def cleanup_expired_tokens_once() -> int:
    """执行一次清理并提交，返回删除数量。"""
    async with async_session() as db:
        deleted = await PasswordResetService(db).cleanup_expired_tokens()
        await db.commit()
    if deleted > 0:
        logger.info("Token cleanup: deleted %d expired password reset tokens", deleted)
    else:
        logger.debug("Token cleanup: no expired tokens found")
    return deleted


async def token_cleanup_loop(interval_seconds: Optional[int] = None):
    """
    过期令牌清理后台循环。

    Args:
        interval_seconds: 清理间隔（秒），为None时使用配置值
    """
    if interval_seconds is None:
        interval_seconds = settings.token_cleanup_interval_seconds

    logger.info("Starting token cleanup loop every %d seconds", interval_seconds)

    while True:
        try:
            await cleanup_expired_tokens_once()
        except Exception as e:
            logger.exception("Token cleanup error: %s", e)

        await asyncio.sleep(interval_seconds)
