"""
评论服务 (Comment Service)

把评论审核状态机接到评论仓储上：读取当前快照，交给状态机判定，再写回结果。
状态机负责权限与状态规则，本服务只负责加载、持久化和查询。

Wires the moderation machine to the comment repository: load the snapshot, let
the machine decide, persist the outcome.
"""
import logging
import math
from typing import Optional

from app.core.exceptions import NotFoundError
from app.models.comment import Comment
from app.repositories.comments import CommentFilters, CommentRepository, to_state
from app.services.comment_moderation import (
    Actor,
    CommentModerationMachine,
    CommentState,
    CommentStatus,
    moderation,
)

logger = logging.getLogger(__name__)


class CommentService:
    """评论的创建、审核、编辑、删除与查询。"""

    def __init__(self, repo: CommentRepository, machine: CommentModerationMachine = moderation):
        self.repo = repo
        self.machine = machine

    async def _snapshot(self, comment_id: int) -> Optional[CommentState]:
        comment = await self.repo.get(comment_id)
        return to_state(comment) if comment is not None else None

    async def create_comment(self, post_id: int, actor: Actor, content: str) -> Comment:
        """新评论一律进入 PENDING 等待审核。文章不存在时抛出 NotFoundError。"""
        if not await self.repo.post_exists(post_id):
            raise NotFoundError("Post")
        draft = self.machine.create(post_id, actor, content)
        comment = await self.repo.add(draft)
        logger.info("Comment %s created on post %s by user %s", comment.id, post_id, actor.user_id)
        return comment

    async def edit_comment(self, comment_id: int, actor: Actor, content: str) -> Comment:
        state = self.machine.edit(await self._snapshot(comment_id), actor, content)
        comment = await self.repo.save(state)
        logger.info("Comment %s edited by author, back to PENDING", comment_id)
        return comment

    async def approve(self, comment_id: int, actor: Actor) -> Comment:
        state = self.machine.approve(await self._snapshot(comment_id), actor)
        logger.info("Comment %s approved by user %s", comment_id, actor.user_id)
        return await self.repo.save(state)

    async def mark_spam(self, comment_id: int, actor: Actor) -> Comment:
        state = self.machine.mark_spam(await self._snapshot(comment_id), actor)
        logger.info("Comment %s marked as spam by user %s", comment_id, actor.user_id)
        return await self.repo.save(state)

    async def delete_comment(self, comment_id: int, actor: Actor) -> None:
        self.machine.authorize_delete(await self._snapshot(comment_id), actor)
        if not await self.repo.delete(comment_id):
            raise NotFoundError("Comment")
        logger.info("Comment %s deleted by user %s", comment_id, actor.user_id)

    async def get_allowed_actions(self, comment_id: int, actor: Actor) -> list[str]:
        """当前用户可对评论执行的操作，供前端决定显示哪些按钮。"""
        state = self.machine.require(await self._snapshot(comment_id))
        return sorted(action.value for action in self.machine.allowed_actions(state, actor))

    async def get_post_comments(self, post_id: int, include_all: bool = False) -> list[Comment]:
        """文章下的评论，公开访问只返回 APPROVED，按时间倒序。"""
        status = None if include_all else CommentStatus.APPROVED
        return await self.repo.find_for_post(post_id, status)

    async def list_comments(self, filters: CommentFilters) -> dict:
        """后台评论列表，支持状态、文章、用户、关键字筛选与分页。"""
        comments, total = await self.repo.find_many(filters)
        return {
            "comments": comments,
            "total": total,
            "page": filters.page,
            "total_pages": math.ceil(total / filters.limit) if filters.limit else 0,
        }

    async def get_statistics(self) -> dict[str, int]:
        counts = await self.repo.count_by_status()
        return {
            "total": sum(counts.values()),
            "pending": counts.get(CommentStatus.PENDING.value, 0),
            "approved": counts.get(CommentStatus.APPROVED.value, 0),
            "spam": counts.get(CommentStatus.SPAM.value, 0),
        }

    async def get_comment_count(self, post_id: int) -> int:
        """文章下已通过的评论数。"""
        counts = await self.repo.count_by_status(post_id)
        return counts.get(CommentStatus.APPROVED.value, 0)
