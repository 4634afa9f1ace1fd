"""
站点设置路由 (Site Settings Router)

功能说明：站点基础信息、SEO 和社交链接的管理接口
核心职责：
  - 管理员按分类查询、批量更新、删除设置
  - 批量更新前先整体校验，一次性返回所有非法键
  - 初始化缺失的默认设置
  - 公开读取接口供前台渲染使用（带缓存头）
  - 设置变更写入审计日志
API端点：
  GET/PUT /api/v1/admin/settings, GET /api/v1/admin/settings/{category},
  POST /api/v1/admin/settings/defaults, DELETE /api/v1/admin/settings/{key},
  GET /api/v1/settings
"""
import json
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_admin_user
from app.core.exceptions import ValidationError
from app.models.user import User
from app.repositories.settings import SqlSettingRepository
from app.schemas.setting import SettingsInitResponse, SettingsResponse, SettingsUpdateResponse
from app.services import setting_rules
from app.services.audit import client_ip, log_audit
from app.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin/settings", tags=["settings"])
public_router = APIRouter(prefix="/api/v1/settings", tags=["settings"])

PUBLIC_CACHE_CONTROL = "public, max-age=300"


def get_settings_service(db: AsyncSession = Depends(get_db)) -> SettingsService:
    return SettingsService(SqlSettingRepository(db))


@router.get("", response_model=SettingsResponse)
async def list_settings(
    category: Optional[str] = None,
    service: SettingsService = Depends(get_settings_service),
    _: User = Depends(get_admin_user),
):
    """全部设置，或通过 ?category= 只取某一分类。"""
    if category:
        return SettingsResponse(settings=await service.get_by_category(category), category=category)
    return SettingsResponse(settings=await service.get_all())


@router.get("/{category}", response_model=SettingsResponse)
async def get_category_settings(
    category: str,
    service: SettingsService = Depends(get_settings_service),
    _: User = Depends(get_admin_user),
):
    return SettingsResponse(settings=await service.get_by_category(category), category=category)


@router.put("", response_model=SettingsUpdateResponse)
async def update_settings(
    data: Dict[str, str],
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: SettingsService = Depends(get_settings_service),
    user: User = Depends(get_admin_user),
):
    """
    批量更新站点设置 (Batch Update Site Settings)

    请求体为 {key: value}。先对全部键做清洗和校验，任意键非法时返回 400，
    errors 字段列出每个非法键的错误信息，数据库不做任何修改。

    Examples:
        PUT /api/v1/admin/settings
        {"site_name": "Inkwell", "social_twitter": "twitter.com/inkwell"}
    """
    if not data:
        raise ValidationError("No settings provided")

    verdict = setting_rules.validate_batch(data)
    if not verdict.valid:
        logger.info("Settings update rejected: %s", ", ".join(sorted(verdict.errors)))
        raise ValidationError("Validation failed", errors=verdict.errors)

    cleaned = await service.update_settings(data)

    await log_audit(db, user.id, "update_settings", "settings", None,
                    json.dumps(cleaned, ensure_ascii=False), client_ip(request))
    await db.commit()
    return SettingsUpdateResponse(message="Settings updated successfully", settings=cleaned)


@router.post("/defaults", response_model=SettingsInitResponse)
async def initialize_settings(
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: SettingsService = Depends(get_settings_service),
    user: User = Depends(get_admin_user),
):
    """写入缺失的默认设置，已有值不覆盖。"""
    created = await service.initialize_defaults()
    await log_audit(db, user.id, "initialize_settings", "settings", None,
                    json.dumps(created), client_ip(request))
    await db.commit()
    return SettingsInitResponse(message="Default settings initialized", created=created)


@router.delete("/{key}")
async def delete_setting(
    key: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: SettingsService = Depends(get_settings_service),
    user: User = Depends(get_admin_user),
):
    await service.delete_setting(key)
    await log_audit(db, user.id, "delete_setting", "settings", None,
                    json.dumps({"key": key}), client_ip(request))
    await db.commit()
    return {"message": "Setting deleted"}


@public_router.get("", response_model=SettingsResponse)
async def get_public_settings(
    response: Response,
    category: Optional[str] = None,
    service: SettingsService = Depends(get_settings_service),
):
    """前台可见的设置，浏览器与 CDN 可缓存 5 分钟。"""
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return SettingsResponse(settings=await service.get_public(category), category=category)
