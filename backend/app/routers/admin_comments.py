"""
评论审核路由 (Comment Moderation Router)

功能说明：管理员侧的评论审核接口
核心职责：
  - 按状态、文章、作者、关键字筛选评论并分页
  - 各状态评论数量统计
  - 通过、标记垃圾、删除评论
  - 审核操作写入审计日志
API端点：
  GET /api/v1/admin/comments, GET /api/v1/admin/comments/stats,
  POST /api/v1/admin/comments/{id}/approve, POST /api/v1/admin/comments/{id}/spam,
  DELETE /api/v1/admin/comments/{id}
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_admin_user
from app.models.user import User
from app.repositories.comments import CommentFilters
from app.routers.comments import get_comment_service
from app.schemas.comment import CommentListResponse, CommentResponse, CommentStats
from app.services.audit import client_ip, log_audit
from app.services.comment_moderation import Actor, CommentStatus
from app.services.comment_service import CommentService

router = APIRouter(prefix="/api/v1/admin/comments", tags=["admin-comments"])


def _actor(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


@router.get("", response_model=CommentListResponse)
async def list_comments(
    status: Optional[CommentStatus] = None,
    post_id: Optional[int] = None,
    user_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    service: CommentService = Depends(get_comment_service),
    _: User = Depends(get_admin_user),
):
    """
    评论列表 (Comment List)

    支持组合筛选：status、post_id、user_id，search 为内容的不区分大小写子串匹配。
    按创建时间倒序分页。
    """
    filters = CommentFilters(
        status=status, post_id=post_id, user_id=user_id, search=search, page=page, limit=limit,
    )
    return await service.list_comments(filters)


@router.get("/stats", response_model=CommentStats)
async def comment_stats(
    service: CommentService = Depends(get_comment_service),
    _: User = Depends(get_admin_user),
):
    return await service.get_statistics()


@router.post("/{comment_id}/approve", response_model=CommentResponse)
async def approve_comment(
    comment_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    user: User = Depends(get_admin_user),
):
    comment = await service.approve(comment_id, _actor(user))
    await log_audit(db, user.id, "approve_comment", "comment", comment_id, None, client_ip(request))
    await db.commit()
    return comment


@router.post("/{comment_id}/spam", response_model=CommentResponse)
async def mark_comment_spam(
    comment_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    user: User = Depends(get_admin_user),
):
    comment = await service.mark_spam(comment_id, _actor(user))
    await log_audit(db, user.id, "spam_comment", "comment", comment_id, None, client_ip(request))
    await db.commit()
    return comment


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    user: User = Depends(get_admin_user),
):
    await service.delete_comment(comment_id, _actor(user))
    await log_audit(db, user.id, "delete_comment", "comment", comment_id, None, client_ip(request))
    await db.commit()
    return {"message": "Comment deleted"}
