"""后台任务测试 — 过期重置令牌清理。"""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from app.core.security import hash_token
from app.models.password_reset_token import PasswordResetToken


async def _add_token(db, user_id: int, raw: str, expires_in: timedelta) -> None:
    db.add(PasswordResetToken(
        token=hash_token(raw),
        user_id=user_id,
        expires_at=datetime.now(timezone.utc) + expires_in,
    ))
    await db.commit()


def _patched_session(db_session):
    ctx = patch("app.tasks.token_cleanup.async_session")
    mock_session_ctx = ctx.start()
    mock_session_ctx.return_value.__aenter__ = AsyncMock(return_value=db_session)
    mock_session_ctx.return_value.__aexit__ = AsyncMock(return_value=False)
    return ctx


class TestTokenCleanup:
    async def test_deletes_only_expired(self, db_session, regular_user):
        from app.tasks.token_cleanup import cleanup_expired_tokens_once

        await _add_token(db_session, regular_user.id, "stale", timedelta(hours=-2))
        await _add_token(db_session, regular_user.id, "fresh", timedelta(hours=1))

        ctx = _patched_session(db_session)
        try:
            assert await cleanup_expired_tokens_once() == 1
        finally:
            ctx.stop()

        remaining = (await db_session.execute(select(PasswordResetToken.token))).scalars().all()
        assert remaining == [hash_token("fresh")]

    async def test_nothing_to_delete(self, db_session):
        from app.tasks.token_cleanup import cleanup_expired_tokens_once

        ctx = _patched_session(db_session)
        try:
            assert await cleanup_expired_tokens_once() == 0
        finally:
            ctx.stop()

    async def test_loop_survives_errors(self):
        """单次清理失败不应终止循环。"""
        from app.tasks.token_cleanup import token_cleanup_loop

        once = AsyncMock(side_effect=[RuntimeError("db down"), 0])
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])
        with patch("app.tasks.token_cleanup.cleanup_expired_tokens_once", once), \
                patch("app.tasks.token_cleanup.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await token_cleanup_loop(interval_seconds=5)

        assert once.await_count == 2
        sleep.assert_awaited_with(5)
