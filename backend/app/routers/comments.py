"""
评论路由 (Comment Router)

功能说明：读者侧评论接口
核心职责：
  - 公开读取文章下已通过的评论
  - 登录用户发表评论（限流，进入待审核状态）
  - 作者编辑自己的评论（重新进入待审核）
  - 作者或管理员删除评论
  - 查询当前用户可执行的评论操作
API端点：
  GET/POST /api/v1/posts/{post_id}/comments,
  PUT/DELETE /api/v1/comments/{comment_id},
  GET /api/v1/comments/{comment_id}/actions
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_actor
from app.core.rate_limiting import comment_limiter, rate_limit, user_or_ip_key
from app.repositories.comments import SqlCommentRepository
from app.schemas.comment import CommentActions, CommentCreate, CommentResponse, CommentUpdate
from app.services.comment_moderation import Actor
from app.services.comment_service import CommentService

router = APIRouter(prefix="/api/v1", tags=["comments"])


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(SqlCommentRepository(db))


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_post_comments(
    post_id: int,
    service: CommentService = Depends(get_comment_service),
):
    """文章下已通过审核的评论，最新的在前。"""
    return await service.get_post_comments(post_id)


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(comment_limiter, user_or_ip_key))],
)
async def create_comment(
    post_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    actor: Actor = Depends(get_current_actor),
):
    """
    发表评论 (Create Comment)

    内容经过长度校验与清洗后保存，状态为 PENDING，管理员审核通过后才公开显示。
    限流先于身份校验执行：每个用户（未登录时按 IP）15 分钟内最多 5 次，响应带 X-RateLimit-* 头。

    Raises:
        ValidationError 400: 内容为空或超过 1000 字符
        NotFoundError 404: 文章不存在
        RateLimitError 429: 发表过于频繁
    """
    comment = await service.create_comment(post_id, actor, data.content)
    await db.commit()
    return comment


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    actor: Actor = Depends(get_current_actor),
):
    """作者编辑评论，编辑后回到待审核状态。"""
    comment = await service.edit_comment(comment_id, actor, data.content)
    await db.commit()
    return comment


@router.get("/comments/{comment_id}/actions", response_model=CommentActions)
async def comment_actions(
    comment_id: int,
    service: CommentService = Depends(get_comment_service),
    actor: Actor = Depends(get_current_actor),
):
    """当前用户可对该评论执行的操作（edit / delete / approve / mark_spam）。"""
    actions = await service.get_allowed_actions(comment_id, actor)
    return CommentActions(comment_id=comment_id, actions=actions)


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    service: CommentService = Depends(get_comment_service),
    actor: Actor = Depends(get_current_actor),
):
    await service.delete_comment(comment_id, actor)
    await db.commit()
    return {"message": "Comment deleted"}
