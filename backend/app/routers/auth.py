"""
用户认证路由模块 (User Authentication Router)

功能说明：提供用户注册、登录、JWT令牌管理和密码找回等认证相关接口
核心职责：
  - 用户注册（首个用户自动设为管理员）
  - 用户登录验证与令牌生成（按 IP 限流）
  - JWT访问令牌和刷新令牌管理
  - 获取当前用户信息
  - 找回密码：签发一次性重置令牌、校验令牌、重置密码
依赖关系：依赖 SQLAlchemy、JWT安全模块、密码重置服务、审计服务
API端点：POST /register, POST /login, POST /refresh, GET /me,
         POST /forgot-password, GET /verify-reset-token, POST /reset-password
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.exceptions import ConflictError, RateLimitError
from app.core.rate_limiting import auth_limiter, password_reset_limiter, rate_limit
from app.core.security import create_access_token, create_refresh_token, decode_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    ResetTokenStatus,
    TokenRefresh,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.services.audit import client_ip, log_audit
from app.services.password_reset import PasswordResetService, mask_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link."


def _tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(user.id)),
        refresh_token=create_refresh_token(str(user.id)),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """
    用户注册接口 (User Registration)

    系统中第一个注册的用户自动成为管理员，之后注册的都是普通用户。

    Raises:
        ConflictError 409: 邮箱已被注册
    """
    email = data.email.lower()
    existing = await db.execute(select(User).where(func.lower(User.email) == email))
    if existing.scalar_one_or_none():
        raise ConflictError("Email already registered")

    # 第一个用户自动设为管理员 (First user becomes admin automatically)
    user_count = (await db.execute(select(func.count()).select_from(User))).scalar()
    role = "admin" if user_count == 0 else "user"

    user = User(email=email, name=data.name, hashed_password=hash_password(data.password), role=role)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User %s registered with role %s", user.id, role)
    return _tokens(user)


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(rate_limit(auth_limiter))])
async def login(data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    """
    用户登录接口 (User Login)

    验证用户凭证并生成访问令牌，同时记录审计日志。同一 IP 15 分钟内最多尝试 5 次。

    Raises:
        HTTPException 401: 凭证无效（邮箱不存在或密码错误）
        HTTPException 403: 账户已禁用
        RateLimitError 429: 尝试过于频繁
    """
    result = await db.execute(select(User).where(func.lower(User.email) == data.email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    await log_audit(db, user.id, "login", "user", user.id, None, client_ip(request))
    await db.commit()
    return _tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(data: TokenRefresh, db: AsyncSession = Depends(get_db)):
    """使用刷新令牌换取新的访问令牌和刷新令牌。"""
    payload = decode_token(data.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user_id = payload.get("sub")
    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return _tokens(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(password_reset_limiter))],
)
async def forgot_password(data: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    """
    找回密码 (Forgot Password)

    无论邮箱是否注册都返回同样的提示，避免泄露账户是否存在。
    令牌通过邮件发送给用户，邮件投递不在本服务内。

    Raises:
        RateLimitError 429: 该账户一小时内申请次数已达上限
    """
    service = PasswordResetService(db)
    if not await service.can_request_reset(data.email):
        raise RateLimitError("Too many password reset requests. Please try again later.", retry_after=3600)

    await service.request_password_reset(data.email)
    await db.commit()
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.get("/verify-reset-token", response_model=ResetTokenStatus)
async def verify_reset_token(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """校验重置令牌，有效时返回部分遮挡的邮箱供页面展示。"""
    service = PasswordResetService(db)
    email = await service.get_user_email_from_token(token)
    if email is None:
        return ResetTokenStatus(valid=False, message="Invalid or expired token")
    return ResetTokenStatus(valid=True, email=mask_email(email))


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """
    重置密码 (Reset Password)

    Raises:
        InvalidTokenError 400: 令牌不存在
        TokenAlreadyUsedError 400: 令牌已使用
        ExpiredTokenError 400: 令牌已过期
    """
    service = PasswordResetService(db)
    user_id = await service.reset_password(data.token, data.password)
    await log_audit(db, user_id, "reset_password", "user", user_id, None, client_ip(request))
    await db.commit()
    return MessageResponse(message="Password reset successfully. You can now sign in with your new password.")
