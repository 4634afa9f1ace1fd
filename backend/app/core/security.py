"""
安全工具模块 (Security Tools Module)

提供密码哈希、JWT 令牌生成与解析、以及一次性随机令牌生成等安全功能。
密码使用 bcrypt 慢哈希；访问令牌与刷新令牌使用 JWT。

Provides password hashing, JWT token generation/parsing and one-time random token
generation. Passwords use bcrypt; access and refresh tokens are JWTs.
"""
import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# 密码哈希上下文，使用 bcrypt 算法 (Password Hash Context using bcrypt algorithm)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    对明文密码进行哈希加密 (Hash plain text password)

    bcrypt 哈希值自带盐值，同一密码每次哈希结果都不同。

    Args:
        password (str): 用户输入的明文密码 (User's plain text password)

    Returns:
        str: bcrypt 哈希后的密码字符串 (bcrypt hashed password string)
    """
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """验证明文密码是否与哈希值匹配 (Verify plain text password against a bcrypt hash)"""
    return pwd_context.verify(plain, hashed)


def create_access_token(subject: str) -> str:
    """
    生成访问令牌（短期有效） (Generate access token with short expiry)

    Args:
        subject (str): 用户标识，通常是用户 ID (User identifier, usually the user ID)

    Returns:
        str: JWT 访问令牌字符串 (JWT access token string)
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    return jwt.encode(
        {"sub": subject, "exp": expire, "type": "access"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_refresh_token(subject: str) -> str:
    """生成刷新令牌（长期有效） (Generate refresh token with long expiry)"""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days)
    return jwt.encode(
        {"sub": subject, "exp": expire, "type": "refresh"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> dict | None:
    """
    解析 JWT 令牌，失败返回 None (Decode JWT token, return None on failure)

    令牌格式错误、签名无效或已过期时返回 None。

    Returns None if the token is malformed, has a bad signature or has expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def generate_secure_token(nbytes: int = 32) -> str:
    """生成密码学安全的十六进制随机令牌 (Generate a cryptographically secure hex token)"""
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    """令牌的 SHA-256 摘要，数据库只保存摘要 (SHA-256 digest stored in place of the raw token)"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_expiration(hours: int = 1) -> datetime:
    """返回从现在起 hours 小时后的 UTC 过期时间 (UTC expiry `hours` from now)"""
    return datetime.now(timezone.utc) + timedelta(hours=hours)
