"""
标记清洗模块 (Markup Sanitizer)

站点设置和评论内容共用的 HTML 清洗规则：删除 script/iframe 块、javascript: 协议和内联事件属性。
清洗会反复执行直到文本不再变化，因此删除后重新拼接出的危险片段也会被清除，结果是幂等的。

Markup stripping shared by site settings and comment content. Removes script/iframe
blocks, javascript: schemes and inline event-handler tokens, repeating until the
text stops changing so the result is idempotent.
"""
from __future__ import annotations

import re

# === 危险模式 ===
UNSAFE_PATTERNS: list[str] = [
    r"<script\b.*?</script\s*>",
    r"<iframe\b.*?</iframe\s*>",
    r"javascript:",
    r"on\w+\s*=",
]

_UNSAFE_RE = [re.compile(p, re.IGNORECASE | re.DOTALL) for p in UNSAFE_PATTERNS]


def strip_unsafe_markup(text: str) -> str:
    """删除所有危险片段直到不动点，不做首尾空白处理。"""
    previous = None
    while text != previous:
        previous = text
        for pattern in _UNSAFE_RE:
            text = pattern.sub("", text)
    return text


def sanitize_html(text: str) -> str:
    """清洗用户提交的富文本并去除首尾空白。"""
    return strip_unsafe_markup(text).strip()
