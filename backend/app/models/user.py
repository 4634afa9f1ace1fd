"""
用户模型 (User Model)

定义博客平台用户表结构，包括邮箱、密码哈希、角色等字段。
角色 admin 拥有评论审核和站点设置权限，普通用户为 user。

Defines the user table: email, password hash and role. The admin role may
moderate comments and edit site settings; everyone else is a plain user.
"""
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class User(Base):
    """
    用户表 (User Table)

    存储登录凭证、角色和基本资料，为评论归属和基于角色的访问控制提供数据。
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)  # 主键 ID (Primary Key ID)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)  # 用户邮箱（登录名） (User Email, Login Name)
    name: Mapped[str] = mapped_column(String(100), nullable=False)  # 用户姓名 (User Name)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)  # 哈希后的密码 (Hashed Password)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")  # 用户角色：admin/user (User Role)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)  # 账户是否激活 (Account Active Status)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )  # 账户创建时间 (Account Creation Time)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )  # 账户更新时间 (Account Update Time)
