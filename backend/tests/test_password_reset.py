"""密码重置测试 — 令牌签发、校验、一次性使用、过期与清理。"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ExpiredTokenError, InvalidTokenError, TokenAlreadyUsedError
from app.core.security import hash_token, verify_password
from app.models.password_reset_token import PasswordResetToken
from app.services.password_reset import UNKNOWN_ACCOUNT_TOKEN, PasswordResetService, mask_email


@pytest.fixture
def service(db_session: AsyncSession) -> PasswordResetService:
    return PasswordResetService(db_session)


async def _token_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(PasswordResetToken.id)))).scalar()


async def _expire(db: AsyncSession, token: str) -> None:
    record = (await db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == hash_token(token))
    )).scalar_one()
    record.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db.flush()


class TestPasswordResetService:
    async def test_unknown_email_creates_nothing(self, service, db_session):
        assert await service.request_password_reset("ghost@test.com") == UNKNOWN_ACCOUNT_TOKEN
        assert await _token_count(db_session) == 0

    async def test_issue_and_validate(self, service, regular_user):
        token = await service.request_password_reset("READER@test.com")
        assert token != UNKNOWN_ACCOUNT_TOKEN
        assert len(token) == 64
        assert await service.validate_reset_token(token)
        assert await service.get_user_email_from_token(token) == regular_user.email

    async def test_token_stored_as_digest(self, service, db_session, regular_user):
        token = await service.request_password_reset(regular_user.email)
        stored = (await db_session.execute(select(PasswordResetToken.token))).scalar_one()
        assert stored == hash_token(token)
        assert stored != token

    async def test_new_request_replaces_unused_token(self, service, db_session, regular_user):
        first = await service.request_password_reset(regular_user.email)
        second = await service.request_password_reset(regular_user.email)
        assert await _token_count(db_session) == 1
        assert not await service.validate_reset_token(first)
        assert await service.validate_reset_token(second)

    async def test_reset_password_latches_token(self, service, db_session, regular_user):
        token = await service.request_password_reset(regular_user.email)
        user_id = await service.reset_password(token, "brand-new-pass")
        assert user_id == regular_user.id
        await db_session.refresh(regular_user)
        assert verify_password("brand-new-pass", regular_user.hashed_password)

        with pytest.raises(TokenAlreadyUsedError):
            await service.reset_password(token, "another-pass")
        assert not await service.validate_reset_token(token)
        assert await service.get_user_email_from_token(token) is None

    async def test_unknown_token(self, service):
        with pytest.raises(InvalidTokenError):
            await service.reset_password("nope", "whatever-pass")
        assert not await service.validate_reset_token("nope")

    async def test_expired_token(self, service, db_session, regular_user):
        token = await service.request_password_reset(regular_user.email)
        await _expire(db_session, token)
        with pytest.raises(ExpiredTokenError):
            await service.reset_password(token, "brand-new-pass")
        assert not await service.validate_reset_token(token)

    async def test_used_tokens_survive_new_request(self, service, db_session, regular_user):
        token = await service.request_password_reset(regular_user.email)
        await service.reset_password(token, "brand-new-pass")
        await service.request_password_reset(regular_user.email)
        assert await _token_count(db_session) == 2

    async def test_can_request_reset_limit(self, service, db_session, regular_user):
        assert await service.can_request_reset(regular_user.email)
        for _ in range(3):
            token = await service.request_password_reset(regular_user.email)
            await service.reset_password(token, "brand-new-pass")
        assert not await service.can_request_reset(regular_user.email)
        assert await service.can_request_reset("ghost@test.com")

    async def test_cleanup_expired_tokens(self, service, db_session, regular_user, other_user):
        expired = await service.request_password_reset(regular_user.email)
        await service.request_password_reset(other_user.email)
        await _expire(db_session, expired)
        assert await service.cleanup_expired_tokens() == 1
        assert await _token_count(db_session) == 1


class TestMaskEmail:
    @pytest.mark.parametrize("email,masked", [
        ("reader@test.com", "re***@test.com"),
        ("ab@test.com", "ab***@test.com"),
        ("a@test.com", "a@test.com"),
    ])
    def test_mask(self, email, masked):
        assert mask_email(email) == masked


class TestPasswordResetApi:
    async def test_forgot_password_same_message(self, client: AsyncClient, regular_user):
        known = await client.post("/api/v1/auth/forgot-password", json={"email": regular_user.email})
        unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@test.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    async def test_forgot_password_invalid_email(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/forgot-password", json={"email": "not-an-email"})
        assert resp.status_code == 422

    async def test_forgot_password_rate_limited(self, client: AsyncClient):
        for _ in range(3):
            resp = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@test.com"})
            assert resp.status_code == 200
        resp = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@test.com"})
        assert resp.status_code == 429

    async def test_full_reset_flow(self, client: AsyncClient, db_session, regular_user):
        token = await PasswordResetService(db_session).request_password_reset(regular_user.email)
        await db_session.commit()

        resp = await client.get("/api/v1/auth/verify-reset-token", params={"token": token})
        assert resp.json() == {"valid": True, "email": "re***@test.com", "message": None}

        resp = await client.post("/api/v1/auth/reset-password",
                                 json={"token": token, "password": "fresh-password"})
        assert resp.status_code == 200

        resp = await client.post("/api/v1/auth/login",
                                 json={"email": regular_user.email, "password": "fresh-password"})
        assert resp.status_code == 200

        resp = await client.post("/api/v1/auth/reset-password",
                                 json={"token": token, "password": "fresh-password"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "This reset token has already been used."

    async def test_verify_invalid_token(self, client: AsyncClient):
        resp = await client.get("/api/v1/auth/verify-reset-token", params={"token": "bogus"})
        assert resp.status_code == 200
        assert resp.json()["valid"] is False

    async def test_reset_with_invalid_token(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/reset-password",
                                 json={"token": "bogus", "password": "fresh-password"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid reset token"

    async def test_reset_rejects_short_password(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/reset-password", json={"token": "t", "password": "short"})
        assert resp.status_code == 422
