"""
站点设置请求/响应模型

设置值统一为字符串；批量更新以 {key: value} 的形式提交。
"""
from typing import Dict, Optional

from pydantic import BaseModel


class SettingsResponse(BaseModel):
    """设置集合响应体。"""
    settings: Dict[str, str]
    category: Optional[str] = None


class SettingsUpdateResponse(BaseModel):
    """批量更新结果，返回清洗后实际写入的值。"""
    message: str
    settings: Dict[str, str]


class SettingsInitResponse(BaseModel):
    """默认设置初始化结果。"""
    message: str
    created: list[str]
