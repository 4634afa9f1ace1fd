"""
FastAPI 依赖项模块 (FastAPI Dependencies Module)

提供通用依赖注入函数，包括用户认证、角色检查，以及把当前用户转换为评论审核所用的 Actor。
基于 JWT 令牌实现用户身份验证和基于角色的访问控制（RBAC）。

Provides common dependency injection functions: user authentication, role checks,
and the conversion of the current user into the Actor consumed by comment moderation.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import decode_token
from app.models.user import User
from app.services.comment_moderation import Actor

# Bearer Token 认证方案 (Bearer Token Authentication Scheme)
security = HTTPBearer()


async def _user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    从请求头中提取并验证 JWT，返回当前登录用户 (Extract and validate JWT from request header, return current user)

    解析 Authorization 头中的 Bearer Token，验证签名和有效期，再从数据库加载用户。
    """
    user = await _user_from_token(credentials.credentials, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


def require_role(*roles: str):
    """
    角色检查依赖工厂 (Role check dependency factory)

    返回一个检查用户角色的依赖函数，只有拥有指定角色的用户才能访问受保护的端点。
    """
    async def checker(user: User = Depends(get_current_user)):
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
        return user
    return checker


async def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    """当前用户对应的审核参与者 (Moderation actor for the current user)"""
    return Actor(user_id=user.id, role=user.role)


# 预定义常用角色依赖 (Predefined common role dependencies)
get_admin_user = require_role("admin")  # 仅管理员 (Admin only)
