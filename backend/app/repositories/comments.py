"""评论仓储：评论的增删改查、筛选分页与状态统计。"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.comment import Comment
from app.models.post import Post
from app.services.comment_moderation import CommentDraft, CommentState, CommentStatus


@dataclass(frozen=True, slots=True)
class CommentFilters:
    """Admin listing filters; page is 1-based."""

    status: Optional[CommentStatus] = None
    post_id: Optional[int] = None
    user_id: Optional[int] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 50


def to_state(comment: Comment) -> CommentState:
    """ORM row -> moderation snapshot."""
    return CommentState(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.user_id,
        content=comment.content,
        status=CommentStatus(comment.status),
    )


class CommentRepository(Protocol):
    """Comment persistence port."""

    async def get(self, comment_id: int) -> Optional[Comment]:  # pragma: no cover - interface
        ...

    async def post_exists(self, post_id: int) -> bool:  # pragma: no cover - interface
        ...

    async def add(self, draft: CommentDraft) -> Comment:  # pragma: no cover - interface
        ...

    async def save(self, state: CommentState) -> Comment:  # pragma: no cover - interface
        ...

    async def delete(self, comment_id: int) -> bool:  # pragma: no cover - interface
        ...

    async def find_for_post(
        self, post_id: int, status: Optional[CommentStatus] = None
    ) -> list[Comment]:  # pragma: no cover - interface
        ...

    async def find_many(self, filters: CommentFilters) -> tuple[list[Comment], int]:  # pragma: no cover - interface
        ...

    async def count_by_status(self, post_id: Optional[int] = None) -> dict[str, int]:  # pragma: no cover - interface
        ...


class SqlCommentRepository:
    """SQLAlchemy-backed comment repository. Writes are flushed, never committed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, comment_id: int) -> Optional[Comment]:
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        return result.scalar_one_or_none()

    async def post_exists(self, post_id: int) -> bool:
        result = await self.db.execute(select(Post.id).where(Post.id == post_id))
        return result.scalar_one_or_none() is not None

    async def add(self, draft: CommentDraft) -> Comment:
        comment = Comment(
            post_id=draft.post_id,
            user_id=draft.author_id,
            content=draft.content,
            status=draft.status.value,
        )
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    async def save(self, state: CommentState) -> Comment:
        comment = await self.get(state.id)
        if comment is None:
            # 行在读取之后被并发删除
            raise NotFoundError("Comment")
        comment.content = state.content
        comment.status = state.status.value
        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    async def delete(self, comment_id: int) -> bool:
        result = await self.db.execute(delete(Comment).where(Comment.id == comment_id))
        await self.db.flush()
        return result.rowcount > 0

    async def find_for_post(self, post_id: int, status: Optional[CommentStatus] = None) -> list[Comment]:
        q = select(Comment).where(Comment.post_id == post_id)
        if status is not None:
            q = q.where(Comment.status == status.value)
        q = q.order_by(Comment.created_at.desc(), Comment.id.desc())
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def find_many(self, filters: CommentFilters) -> tuple[list[Comment], int]:
        conditions = []
        if filters.status is not None:
            conditions.append(Comment.status == filters.status.value)
        if filters.post_id is not None:
            conditions.append(Comment.post_id == filters.post_id)
        if filters.user_id is not None:
            conditions.append(Comment.user_id == filters.user_id)
        if filters.search:
            conditions.append(func.lower(Comment.content).contains(filters.search.lower()))

        q = select(Comment)
        count_q = select(func.count(Comment.id))
        if conditions:
            q = q.where(and_(*conditions))
            count_q = count_q.where(and_(*conditions))

        total = (await self.db.execute(count_q)).scalar() or 0
        q = (
            q.order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await self.db.execute(q)
        return list(result.scalars().all()), total

    async def count_by_status(self, post_id: Optional[int] = None) -> dict[str, int]:
        q = select(Comment.status, func.count(Comment.id)).group_by(Comment.status)
        if post_id is not None:
            q = q.where(Comment.post_id == post_id)
        result = await self.db.execute(q)
        return {status: count for status, count in result.all()}


__all__ = ["CommentFilters", "CommentRepository", "SqlCommentRepository", "to_state"]
