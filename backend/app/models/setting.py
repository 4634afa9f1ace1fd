"""
站点设置模型

定义键值对形式的站点配置项表结构。category 由键前缀推导，写入时与 category_of(key) 保持一致。
"""
from sqlalchemy import Column, String, Text, DateTime, func
from app.core.database import Base


class Setting(Base):
    """站点设置表，以键值对形式存储可在后台调整的配置。"""
    __tablename__ = "site_settings"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False, default="")
    category = Column(String(50), nullable=False, default="general", index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
