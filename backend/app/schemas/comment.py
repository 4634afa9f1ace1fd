"""
评论相关请求/响应模型

定义评论发布、编辑、列表、统计等 API 的数据结构。
内容的长度校验（1..1000）与清洗都在服务层完成，失败时统一返回 400。
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.services.comment_moderation import CommentStatus


class CommentCreate(BaseModel):
    """发表评论请求体。"""
    content: str


class CommentUpdate(BaseModel):
    """编辑评论请求体。"""
    content: str


class CommentResponse(BaseModel):
    """评论响应体。"""
    id: int
    post_id: int
    user_id: int
    content: str
    status: CommentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    """后台评论分页列表。"""
    comments: list[CommentResponse]
    total: int
    page: int
    total_pages: int


class CommentStats(BaseModel):
    """各状态评论数量。"""
    total: int
    pending: int
    approved: int
    spam: int


class CommentActions(BaseModel):
    """当前用户对某条评论可执行的操作。"""
    comment_id: int
    actions: list[str]
