"""站点设置仓储：按键读写，按分类批量查询。"""
from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.setting import Setting


class SettingRepository(Protocol):
    """Setting persistence port."""

    async def get(self, key: str) -> Optional[Setting]:  # pragma: no cover - interface
        ...

    async def find_many(self, category: Optional[str] = None) -> list[Setting]:  # pragma: no cover - interface
        ...

    async def upsert(self, key: str, value: str, category: str) -> Setting:  # pragma: no cover - interface
        ...

    async def insert_if_missing(self, key: str, value: str, category: str) -> bool:  # pragma: no cover - interface
        ...

    async def delete(self, key: str) -> bool:  # pragma: no cover - interface
        ...


class SqlSettingRepository:
    """SQLAlchemy-backed settings repository. Writes are flushed, never committed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[Setting]:
        result = await self.db.execute(select(Setting).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def find_many(self, category: Optional[str] = None) -> list[Setting]:
        q = select(Setting).order_by(Setting.key)
        if category:
            q = q.where(Setting.category == category)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def upsert(self, key: str, value: str, category: str) -> Setting:
        setting = await self.get(key)
        if setting:
            setting.value = value
            setting.category = category
        else:
            setting = Setting(key=key, value=value, category=category)
            self.db.add(setting)
        await self.db.flush()
        return setting

    async def insert_if_missing(self, key: str, value: str, category: str) -> bool:
        if await self.get(key) is not None:
            return False
        self.db.add(Setting(key=key, value=value, category=category))
        await self.db.flush()
        return True

    async def delete(self, key: str) -> bool:
        setting = await self.get(key)
        if setting is None:
            return False
        await self.db.delete(setting)
        await self.db.flush()
        return True


__all__ = ["SettingRepository", "SqlSettingRepository"]
