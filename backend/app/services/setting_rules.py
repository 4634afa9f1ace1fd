"""
站点设置规则引擎 (Site Setting Rule Engine)

按设置键对候选值进行清洗和校验，不做任何 I/O。
键的前缀（site_ / seo_ / social_）决定分类和适用规则；校验前总会重新清洗，第一条失败的规则生效。

Sanitizes and validates a candidate value for a setting key without any I/O.
The key prefix decides the category and the rule set; validation always
re-sanitizes first and the first failing rule wins.
"""
from __future__ import annotations

import ipaddress
import re
from typing import Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from app.services.sanitizer import strip_unsafe_markup

# === 分类 ===
CATEGORY_BY_PREFIX: dict[str, str] = {
    "site_": "general",
    "seo_": "seo",
    "social_": "social",
}
DEFAULT_CATEGORY = "general"
CATEGORIES: tuple[str, ...] = ("general", "seo", "social")

SOCIAL_PREFIX = "social_"
REQUIRED_KEYS: frozenset[str] = frozenset({"site_name", "seo_meta_title"})
ALLOWED_URL_SCHEMES: frozenset[str] = frozenset({"http", "https"})

MAX_VALUE_LENGTH = 1000
SITE_NAME_MIN_LENGTH = 2
META_TITLE_MAX_LENGTH = 60
META_DESCRIPTION_MAX_LENGTH = 160

# === 错误信息 ===
ERROR_REQUIRED = "This field is required"
ERROR_INVALID_URL = "Invalid URL format"
ERROR_URL_SCHEME = "Only HTTP and HTTPS URLs are allowed"
ERROR_TOO_LONG = f"Value too long (max {MAX_VALUE_LENGTH} characters)"
ERROR_SITE_NAME_SHORT = f"Site name must be at least {SITE_NAME_MIN_LENGTH} characters"
ERROR_META_TITLE_LONG = f"Meta title must be {META_TITLE_MAX_LENGTH} characters or less"
ERROR_META_DESCRIPTION_LONG = f"Meta description must be {META_DESCRIPTION_MAX_LENGTH} characters or less"

_HTTP_SCHEME_RE = re.compile(r"^(https?)://", re.IGNORECASE)
# 前置 https:// 之后仍携带的协议，例如 https://ftp://x.com
_NESTED_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*)://", re.IGNORECASE)
_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)(?:[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?\.)+(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$",
    re.IGNORECASE,
)


class RuleResult(BaseModel):
    """单个设置值的校验结论。"""
    valid: bool
    error: Optional[str] = None


class BatchResult(BaseModel):
    """批量校验结论，errors 以设置键为索引。"""
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


def category_of(key: str) -> str:
    """由键前缀推导分类，未知前缀归入 general。"""
    for prefix, category in CATEGORY_BY_PREFIX.items():
        if key.startswith(prefix):
            return category
    return DEFAULT_CATEGORY


def sanitize(key: str, raw_value: str) -> str:
    """
    清洗设置值 (Sanitize a setting value)

    删除危险标记并去除首尾空白；social_ 键的非空值若没有 http(s):// 前缀则补上 https://。
    对同一个键重复清洗结果不变。
    """
    value = strip_unsafe_markup(raw_value).strip()

    if key.startswith(SOCIAL_PREFIX) and value:
        match = _HTTP_SCHEME_RE.match(value)
        if match:
            value = match.group(1).lower() + "://" + value[match.end():]
        else:
            value = "https://" + value

    return value


def check_url(value: str) -> Optional[str]:
    """校验社交链接，合法返回 None，否则返回错误信息。"""
    if any(ch.isspace() for ch in value):
        return ERROR_INVALID_URL

    try:
        parts = urlsplit(value)
    except ValueError:
        return ERROR_INVALID_URL

    scheme = parts.scheme.lower()
    if not scheme or not value[len(scheme):].startswith("://"):
        return ERROR_INVALID_URL
    if scheme not in ALLOWED_URL_SCHEMES:
        return ERROR_URL_SCHEME

    nested = _NESTED_SCHEME_RE.match(value[len(scheme) + 3:])
    if nested:
        if nested.group(1).lower() not in ALLOWED_URL_SCHEMES:
            return ERROR_URL_SCHEME
        return ERROR_INVALID_URL

    try:
        hostname, port = parts.hostname, parts.port
    except ValueError:
        return ERROR_INVALID_URL
    if port == 0 or not _is_valid_host(hostname):
        return ERROR_INVALID_URL
    return None


def _is_valid_host(hostname: Optional[str]) -> bool:
    """域名须带点（可带结尾的根点，可为国际化域名）、localhost 或 IP。"""
    if not hostname:
        return False
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass

    if hostname.endswith("."):
        hostname = hostname[:-1]
    try:
        ascii_host = hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    return ascii_host == "localhost" or _HOSTNAME_RE.match(ascii_host) is not None


def validate(key: str, value: str) -> RuleResult:
    """
    校验设置值 (Validate a setting value)

    规则按顺序执行，第一条失败的规则生效：
    1. 重新清洗
    2. 必填键为空
    3. social_ 键的 URL 格式与协议
    4. 总长度上限
    5-7. site_name / seo_meta_title / seo_meta_description 的专属长度限制
    """
    clean = sanitize(key, value)

    if key in REQUIRED_KEYS and not clean:
        return RuleResult(valid=False, error=ERROR_REQUIRED)

    if key.startswith(SOCIAL_PREFIX) and clean:
        url_error = check_url(clean)
        if url_error:
            return RuleResult(valid=False, error=url_error)

    if len(clean) > MAX_VALUE_LENGTH:
        return RuleResult(valid=False, error=ERROR_TOO_LONG)

    if key == "site_name" and len(clean) < SITE_NAME_MIN_LENGTH:
        return RuleResult(valid=False, error=ERROR_SITE_NAME_SHORT)

    if key == "seo_meta_title" and len(clean) > META_TITLE_MAX_LENGTH:
        return RuleResult(valid=False, error=ERROR_META_TITLE_LONG)

    if key == "seo_meta_description" and len(clean) > META_DESCRIPTION_MAX_LENGTH:
        return RuleResult(valid=False, error=ERROR_META_DESCRIPTION_LONG)

    return RuleResult(valid=True)


def validate_batch(settings_map: Mapping[str, str]) -> BatchResult:
    """逐键校验全部设置，不在第一个失败处停止。"""
    errors: dict[str, str] = {}
    for key, value in settings_map.items():
        result = validate(key, value)
        if not result.valid:
            errors[key] = result.error
    return BatchResult(valid=not errors, errors=errors)
