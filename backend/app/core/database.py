"""
数据库连接模块 (Database Connection Module)

基于 SQLAlchemy 2.0 异步模式创建数据库引擎和会话管理，为 Inkwell 提供文章、评论、站点设置等数据的持久化。

Creates the async engine and session factory used by Inkwell to persist posts,
comments, site settings and reset tokens.
"""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# 创建异步数据库引擎 (Create Async Database Engine)
engine = create_async_engine(
    settings.database_url,
    echo=False  # 生产环境关闭 SQL 日志输出 (Disable SQL logging in production)
)

# 提交后不过期对象，便于访问已保存的数据 (Don't expire objects after commit)
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """ORM 模型基类，所有数据模型都继承此类。 (Declarative base for every ORM model.)"""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI 依赖项：获取数据库会话 (FastAPI Dependency: Get Database Session)

    使用异步上下文管理器确保会话在请求结束后正确关闭，防止连接泄漏。

    Yields:
        AsyncSession: 异步数据库会话实例 (Async database session instance)
    """
    async with async_session() as session:
        yield session
