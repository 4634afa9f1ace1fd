"""
Inkwell 后端应用入口模块 (Inkwell Backend Application Entry Module)

Inkwell 博客平台的主应用入口，负责 FastAPI 应用的生命周期管理。
包含应用初始化、中间件配置、路由注册、后台任务启动等功能。

Main application entry point for the Inkwell publishing platform. Handles
application lifecycle, middleware configuration, route registration and
background task startup.

主要功能 (Main Features):
- 数据库表自动创建 (Automatic database table creation)
- 默认站点设置初始化 (Default site settings initialization)
- 过期重置令牌清理任务 (Expired reset token cleanup task)
- 健康检查 (Health checks)
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.core.config import settings as app_settings
from app.core.exceptions import register_exception_handlers
from app.core.database import engine, Base, async_session
from app.core.redis import get_redis, close_redis
# 导入所有模型以确保 SQLAlchemy 表注册 (Import all models to ensure SQLAlchemy table registration)
from app.models import User, Post, Comment, Setting, PasswordResetToken, AuditLog  # noqa: F401
from app.repositories.settings import SqlSettingRepository
from app.routers import admin_comments, auth, comments, settings
from app.services.settings_service import SettingsService
from app.tasks.token_cleanup import token_cleanup_loop

logging.basicConfig(
    level=app_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理器 (Application Lifecycle Manager)

    启动时建表、补齐默认站点设置并启动令牌清理任务；关闭时取消任务并释放连接。
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 补齐缺失的默认站点设置，已有值不覆盖 (Insert missing default settings only)
    async with async_session() as db:
        await SettingsService(SqlSettingRepository(db)).initialize_defaults()
        await db.commit()

    cleanup_task = asyncio.create_task(token_cleanup_loop())

    yield

    cleanup_task.cancel()
    await close_redis()
    await engine.dispose()


# 创建 FastAPI 应用实例 (Create FastAPI application instance)
app = FastAPI(
    title="Inkwell",
    description="Publishing platform backend: site settings and comment moderation | 博客平台后端",
    version="0.1.0",
    lifespan=lifespan,
)

# 注册全局异常处理器 (Register global exception handlers)
register_exception_handlers(app)

# 生产环境下只允许前端域名跨域访问 (Only the frontend origin in production)
is_production = app_settings.environment.lower() == "production"
allowed_origins = [app_settings.frontend_url] if is_production else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)

# 注册 API 路由 (Register API routers)
app.include_router(auth.router)  # 用户认证与密码找回 (Authentication and password reset)
app.include_router(settings.router)  # 站点设置管理 (Site settings administration)
app.include_router(settings.public_router)  # 公开站点设置 (Public site settings)
app.include_router(comments.router)  # 读者评论 (Reader comments)
app.include_router(admin_comments.router)  # 评论审核 (Comment moderation)


@app.get("/health")
@app.get("/api/v1/health")
async def health():
    """
    健康检查接口 (Health Check Endpoint)

    检查数据库与 Redis 的连通性，任一组件异常时整体状态为 degraded。
    """
    checks = {"api": "ok"}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        checks["database"] = "error"

    try:
        r = await get_redis()
        await r.ping()
        checks["redis"] = "ok"
    except Exception:
        logger.exception("Health check: redis unreachable")
        checks["redis"] = "error"

    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return {
        "status": status,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
