"""
站点设置服务 (Site Settings Service)

在设置仓储之上组合规则引擎：写入前清洗并校验，分类由键前缀推导。
批量更新在遇到第一个非法键时立即失败（与批量校验报告全部错误的行为不同，保持原有语义）。

Combines the rule engine with the settings repository. Values are sanitized and
validated before every write and the category is always derived from the key.
Batch updates fail on the first invalid key, unlike validate_batch which reports
every key.
"""
import logging
from typing import Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings as app_settings
from app.core.exceptions import NotFoundError, ValidationError
from app.repositories.settings import SettingRepository
from app.services import setting_rules

logger = logging.getLogger(__name__)

# 站点默认配置 (Default Site Settings)
DEFAULT_SETTINGS: dict[str, str] = {
    # 通用 (General)
    "site_name": app_settings.site_name_default,
    "site_tagline": "Notes on writing, software and everything in between",
    "site_description": "A small publishing platform for long-form posts and the conversations around them.",
    "site_logo": "",
    # SEO
    "seo_meta_title": app_settings.site_name_default,
    "seo_meta_description": "Long-form posts on writing and software, with a community that reads closely.",
    "seo_keywords": "blog, writing, software, publishing",
    # 社交链接 (Social)
    "social_twitter": "",
    "social_linkedin": "",
    "social_github": "",
    "social_facebook": "",
    "social_instagram": "",
}

# 公开接口不返回包含这些片段的键
PRIVATE_KEY_MARKERS: tuple[str, ...] = ("secret", "private", "key")


class SettingsService:
    """站点设置的读写入口。只 flush，不 commit，事务由调用方控制。"""

    def __init__(self, repo: SettingRepository):
        self.repo = repo

    async def get_all(self) -> dict[str, str]:
        return {s.key: s.value for s in await self.repo.find_many()}

    async def get_by_category(self, category: str) -> dict[str, str]:
        return {s.key: s.value for s in await self.repo.find_many(category)}

    async def get(self, key: str) -> Optional[str]:
        """单个设置值；不存在或为空字符串时返回 None。"""
        setting = await self.repo.get(key)
        return setting.value if setting is not None and setting.value else None

    async def update_setting(self, key: str, value: str) -> str:
        clean = self._checked(key, value)
        await self.repo.upsert(key, clean, setting_rules.category_of(key))
        logger.info("Setting %s updated", key)
        return clean

    async def update_settings(self, values: Mapping[str, str]) -> dict[str, str]:
        """
        批量更新 (Batch Update)

        先逐键清洗校验，第一个非法键直接抛出 ValidationError，此时不写入任何值；
        全部通过后再统一写入。

        Returns:
            dict: 实际写入的清洗后值
        """
        cleaned = {key: self._checked(key, value) for key, value in values.items()}

        for key, value in cleaned.items():
            await self.repo.upsert(key, value, setting_rules.category_of(key))

        logger.info("Updated %d settings: %s", len(cleaned), ", ".join(sorted(cleaned)))
        return cleaned

    async def delete_setting(self, key: str) -> None:
        if not await self.repo.delete(key):
            raise NotFoundError("Setting")
        logger.info("Setting %s deleted", key)

    async def initialize_defaults(self) -> list[str]:
        """写入缺失的默认设置，已存在的键保持不变。返回新写入的键。"""
        created = []
        for key, value in DEFAULT_SETTINGS.items():
            if await self.repo.insert_if_missing(key, value, setting_rules.category_of(key)):
                created.append(key)
        logger.info("Default settings initialized (%d created)", len(created))
        return created

    async def get_with_defaults(self) -> dict[str, str]:
        """默认值叠加已存储的值；数据库不可用时退回默认值。"""
        try:
            stored = await self.get_all()
        except SQLAlchemyError:
            logger.exception("Failed to load settings, falling back to defaults")
            return dict(DEFAULT_SETTINGS)
        return {**DEFAULT_SETTINGS, **stored}

    async def get_public(self, category: Optional[str] = None) -> dict[str, str]:
        """公开设置：按分类查询时原样返回，否则过滤掉疑似敏感的键。"""
        if category:
            return await self.get_by_category(category)
        return {
            key: value
            for key, value in (await self.get_all()).items()
            if not any(marker in key for marker in PRIVATE_KEY_MARKERS)
        }

    @staticmethod
    def _checked(key: str, value: str) -> str:
        clean = setting_rules.sanitize(key, value)
        result = setting_rules.validate(key, clean)
        if not result.valid:
            raise ValidationError(
                f"Invalid value for {key}: {result.error}",
                errors={key: result.error},
            )
        return clean
