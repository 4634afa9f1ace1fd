"""
API 限流 (API Rate Limiting)

固定窗口计数限流，按接口分组配置规则：
    - 评论发布：5 次 / 15 分钟（登录用户按用户，匿名按 IP）
    - 登录认证：5 次 / 15 分钟（按 IP）
    - 密码重置：3 次 / 1 小时（按 IP）

计数后端可选进程内存或 Redis。Redis 故障时放行请求，可用性优先。

Fixed-window request limiting exposed as FastAPI dependencies. Counters live
either in process memory or in Redis; a Redis outage lets requests through.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional, Protocol, Tuple

from fastapi import Request, Response
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.exceptions import RateLimitError
from app.core.redis import get_redis
from app.core.security import decode_token

logger = logging.getLogger(__name__)


class RateLimitRule:
    """
    限流规则定义 (Rate Limit Rule Definition)

    Args:
        max_requests (int): 时间窗口内最大请求数 (Max requests within time window)
        window_seconds (int): 时间窗口长度（秒） (Time window length in seconds)
        description (str): 规则描述 (Rule description)
    """

    def __init__(self, max_requests: int, window_seconds: int, description: str = ""):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.description = description


@dataclass(frozen=True)
class RateLimitResult:
    """单次计数的结果。reset_at 为窗口结束的 Unix 时间戳（秒）。"""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None

    def headers(self) -> Dict[str, str]:
        reset = datetime.fromtimestamp(self.reset_at, tz=timezone.utc)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset.isoformat().replace("+00:00", "Z"),
        }


def _result(rule: RateLimitRule, count: int, reset_at: float, now: float) -> RateLimitResult:
    allowed = count <= rule.max_requests
    return RateLimitResult(
        allowed=allowed,
        limit=rule.max_requests,
        remaining=max(0, rule.max_requests - count),
        reset_at=reset_at,
        retry_after=None if allowed else max(1, int(reset_at - now + 0.999)),
    )


class RateLimiter(Protocol):
    """限流器接口：对键计数一次并返回判定结果。"""

    rule: RateLimitRule

    async def check(self, key: str) -> RateLimitResult:  # pragma: no cover - interface
        ...


class InMemoryRateLimiter:
    """
    进程内固定窗口限流器 (In-process Fixed Window Limiter)

    窗口从某个键的第一次请求开始计时，到期后重新计数。每次检查时顺带清理过期条目。
    """

    def __init__(self, rule: RateLimitRule, clock: Callable[[], float] = time.time):
        self.rule = rule
        self._clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._entries.items() if now > reset_at]
        for key in expired:
            del self._entries[key]

    async def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        self._purge(now)
        count, reset_at = self._entries.get(key, (0, now + self.rule.window_seconds))
        count += 1
        self._entries[key] = (count, reset_at)
        return _result(self.rule, count, reset_at, now)

    def reset(self) -> None:
        self._entries.clear()


class RedisRateLimiter:
    """
    Redis 固定窗口限流器 (Redis Fixed Window Limiter)

    INCR 计数，首次计数时设置 EXPIRE。多实例部署共享同一计数。
    """

    def __init__(
        self,
        rule: RateLimitRule,
        prefix: str = "rate_limit",
        clock: Callable[[], float] = time.time,
    ):
        self.rule = rule
        self.prefix = prefix
        self._clock = clock

    async def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        redis_key = f"{self.prefix}:{key}"
        try:
            r = await get_redis()
            count = int(await r.incr(redis_key))
            if count == 1:
                await r.expire(redis_key, self.rule.window_seconds)
            ttl = await r.ttl(redis_key)
        except (RedisError, OSError) as e:
            logger.error("Redis rate limit check failed: %s", e)
            return RateLimitResult(True, self.rule.max_requests, self.rule.max_requests, now)
        if ttl is None or ttl < 0:
            ttl = self.rule.window_seconds
        return _result(self.rule, count, now + ttl, now)


def client_address(request: Request) -> str:
    """
    获取客户端真实 IP 地址 (Get Client Real IP Address)

    优先 X-Forwarded-For 的第一个地址，其次 X-Real-IP，最后是直连地址。
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def user_id_from_request(request: Request) -> Optional[str]:
    """从 Bearer 访问令牌中解析用户 ID，无法解析时返回 None。"""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    payload = decode_token(auth_header[len("Bearer "):])
    if payload and payload.get("type") == "access":
        return payload.get("sub")
    return None


def ip_key(request: Request) -> str:
    return f"ip:{client_address(request)}"


def user_or_ip_key(request: Request) -> str:
    user_id = user_id_from_request(request)
    return f"user:{user_id}" if user_id else ip_key(request)


def build_limiter(rule: RateLimitRule, prefix: str) -> RateLimiter:
    if settings.rate_limit_backend == "redis":
        return RedisRateLimiter(rule, prefix=prefix)
    return InMemoryRateLimiter(rule)


# 预置限流器 (Pre-configured limiters)
comment_limiter: RateLimiter = build_limiter(
    RateLimitRule(settings.comment_rate_limit_max, settings.comment_rate_limit_window_seconds,
                  description="评论发布：5次/15分钟"),
    "comment_rate_limit",
)
auth_limiter: RateLimiter = build_limiter(
    RateLimitRule(settings.auth_rate_limit_max, settings.auth_rate_limit_window_seconds,
                  description="登录接口：5次/15分钟"),
    "auth_rate_limit",
)
password_reset_limiter: RateLimiter = build_limiter(
    RateLimitRule(settings.password_reset_rate_limit_max, settings.password_reset_rate_limit_window_seconds,
                  description="密码重置：3次/小时"),
    "password_reset_rate_limit",
)


def rate_limit(
    limiter: RateLimiter,
    key_func: Callable[[Request], str] = ip_key,
) -> Callable[[Request, Response], Awaitable[None]]:
    """
    限流依赖工厂 (Rate Limit Dependency Factory)

    超限时抛出 RateLimitError(429)，并附带 Retry-After 与 X-RateLimit-* 响应头；
    未超限时把 X-RateLimit-* 头写入正常响应。

    使用示例:
        @router.post("/login", dependencies=[Depends(rate_limit(auth_limiter))])
    """

    async def dependency(request: Request, response: Response) -> None:
        if not settings.enable_rate_limiting:
            return
        result = await limiter.check(key_func(request))
        if not result.allowed:
            logger.warning("Rate limit exceeded for %s on %s", key_func(request), request.url.path)
            raise RateLimitError(
                "Too many requests. Please try again later.",
                retry_after=result.retry_after or 60,
                limit_headers={**result.headers(), "X-RateLimit-Remaining": "0"},
            )
        response.headers.update(result.headers())

    return dependency
