"""
Inkwell 测试基础配置

提供 SQLite in-memory 异步数据库、mock Redis、FastAPI 测试客户端和用户/文章 fixture。
所有测试使用隔离的 SQLite 数据库，不依赖外部 PostgreSQL/Redis。
"""
import fnmatch
import os
from typing import AsyncGenerator

import pytest_asyncio
from hypothesis import HealthCheck, settings as hypothesis_settings
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# 必须在导入 app 之前设置环境变量，避免真实连接
os.environ["POSTGRES_HOST"] = "localhost"
os.environ["REDIS_HOST"] = "localhost"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from app.core.database import Base, get_db
from app.core.security import create_access_token, hash_password
import app.core.rate_limiting as rate_limiting
import app.core.redis as redis_module
from app.core.redis import get_redis
from app.models.post import Post
from app.models.user import User


# ── SQLite 异步引擎 ──────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# 性质测试与每个测试的建表 fixture 共存
hypothesis_settings.register_profile(
    "inkwell", suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None,
)
hypothesis_settings.load_profile("inkwell")


# ── Mock Redis ────────────────────────────────────────────────────────
class FakeRedis:
    """内存级 Redis 模拟，支持限流和健康检查用到的命令。"""
    def __init__(self):
        self._store: dict[str, str] = {}
        self._ttl: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None, **kwargs) -> None:
        self._store[key] = value
        if ex is not None:
            self._ttl[key] = ex

    async def delete(self, *keys: str) -> None:
        for k in keys:
            self._store.pop(k, None)
            self._ttl.pop(k, None)

    async def keys(self, pattern: str = "*") -> list[str]:
        return [k for k in self._store if fnmatch.fnmatch(k, pattern)]

    async def incr(self, key: str) -> int:
        val = int(self._store.get(key, "0")) + 1
        self._store[key] = str(val)
        return val

    async def expire(self, key: str, time: int) -> None:
        if key in self._store:
            self._ttl[key] = time

    async def ttl(self, key: str) -> int:
        if key not in self._store:
            return -2
        return self._ttl.get(key, -1)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self._ttl.clear()


fake_redis = FakeRedis()


# ── Fixtures ──────────────────────────────────────────────────────────

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """每个测试前创建所有表，测试后清空。"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(autouse=True)
async def reset_rate_limits():
    """限流计数是进程级状态，每个测试前清零。"""
    for limiter in (rate_limiting.comment_limiter, rate_limiting.auth_limiter,
                    rate_limiting.password_reset_limiter):
        if isinstance(limiter, rate_limiting.InMemoryRateLimiter):
            limiter.reset()
    fake_redis.clear()
    yield


@pytest_asyncio.fixture
async def redis_stub(monkeypatch) -> FakeRedis:
    """独立的 FakeRedis，直接替换全局 redis_client。"""
    stub = FakeRedis()
    monkeypatch.setattr(redis_module, "redis_client", stub)
    return stub


@pytest_asyncio.fixture
async def sqlite_engine():
    """测试用的 SQLite 引擎，供直接使用引擎的代码（如健康检查）替换。"""
    return engine


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """提供一个干净的数据库会话。"""
    async with TestingSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """提供配置好依赖覆盖的异步 HTTP 测试客户端。"""
    from app.main import app

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    # 直接替换 redis_client，让调用 get_redis() 的代码也拿到 fake_redis
    original_redis_client = redis_module.redis_client
    redis_module.redis_client = fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    redis_module.redis_client = original_redis_client


async def _make_user(db: AsyncSession, email: str, name: str, password: str, role: str) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """创建一个管理员用户。"""
    return await _make_user(db_session, "admin@test.com", "Admin", "admin12345", "admin")


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """创建一个普通读者。"""
    return await _make_user(db_session, "reader@test.com", "Reader", "reader12345", "user")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """另一个普通读者，用于验证只能操作自己的评论。"""
    return await _make_user(db_session, "other@test.com", "Other", "other12345", "user")


@pytest_asyncio.fixture
async def post(db_session: AsyncSession, admin_user: User) -> Post:
    """一篇已发布的文章。"""
    item = Post(title="Hello Inkwell", slug="hello-inkwell", status="published", author_id=admin_user.id)
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest_asyncio.fixture
async def auth_headers(admin_user: User) -> dict:
    """管理员认证头。"""
    return {"Authorization": f"Bearer {create_access_token(str(admin_user.id))}"}


@pytest_asyncio.fixture
async def user_headers(regular_user: User) -> dict:
    """普通读者认证头。"""
    return {"Authorization": f"Bearer {create_access_token(str(regular_user.id))}"}


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    """另一个读者的认证头。"""
    return {"Authorization": f"Bearer {create_access_token(str(other_user.id))}"}
