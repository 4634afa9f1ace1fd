"""
评论审核状态机 (Comment Moderation State Machine)

评论有三种状态：PENDING、APPROVED、SPAM，没有终止状态。
新评论一律进入 PENDING；作者编辑内容后重新回到 PENDING 等待复审；
只有管理员可以通过或标记垃圾；作者本人或管理员可以删除。

The machine is pure: it receives the current comment snapshot and the acting
user, checks the guards and returns the next snapshot. Persistence is the
caller's job.
"""
from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.services.sanitizer import sanitize_html

MIN_CONTENT_LENGTH = 1
MAX_CONTENT_LENGTH = 1000


class CommentStatus(str, enum.Enum):
    """评论审核状态。"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    SPAM = "SPAM"


class ModerationAction(str, enum.Enum):
    """可对评论执行的操作。"""
    CREATE = "create"
    EDIT = "edit"
    APPROVE = "approve"
    MARK_SPAM = "mark_spam"
    DELETE = "delete"


class Actor(BaseModel):
    """执行操作的用户身份与角色。"""
    user_id: int
    role: str = "user"

    model_config = {"frozen": True}


class CommentDraft(BaseModel):
    """待持久化的新评论。"""
    post_id: int
    author_id: int
    content: str
    status: CommentStatus = CommentStatus.PENDING


class CommentState(BaseModel):
    """评论的当前快照。"""
    id: int
    post_id: int
    author_id: int
    content: str
    status: CommentStatus

    model_config = {"frozen": True}


class CommentModerationMachine:
    """
    评论审核状态机 (Comment Moderation Machine)

    无内部可变状态，并发调用互不影响。privileged_roles 决定哪些角色可以审核。
    """

    def __init__(self, privileged_roles: frozenset[str] = frozenset({"admin"})) -> None:
        self.privileged_roles = privileged_roles

    def is_privileged(self, actor: Actor) -> bool:
        return actor.role in self.privileged_roles

    @staticmethod
    def require(comment: Optional[CommentState]) -> CommentState:
        if comment is None:
            raise NotFoundError("Comment")
        return comment

    @staticmethod
    def clean_content(content: str) -> str:
        """清洗评论内容并校验清洗后的长度，只剩空白或危险标记的内容视为空。"""
        clean = sanitize_html(content)
        if len(clean) < MIN_CONTENT_LENGTH:
            raise ValidationError("Comment cannot be empty", errors={"content": "Comment cannot be empty"})
        if len(clean) > MAX_CONTENT_LENGTH:
            message = f"Comment must be {MAX_CONTENT_LENGTH} characters or less"
            raise ValidationError(message, errors={"content": message})
        return clean

    def create(self, post_id: int, actor: Actor, content: str) -> CommentDraft:
        return CommentDraft(
            post_id=post_id,
            author_id=actor.user_id,
            content=self.clean_content(content),
            status=CommentStatus.PENDING,
        )

    def edit(self, comment: Optional[CommentState], actor: Actor, content: str) -> CommentState:
        """作者编辑：替换为清洗后的内容，状态强制回到 PENDING。"""
        current = self.require(comment)
        if current.author_id != actor.user_id:
            raise AuthorizationError("You can only edit your own comments")
        return current.model_copy(update={
            "content": self.clean_content(content),
            "status": CommentStatus.PENDING,
        })

    def approve(self, comment: Optional[CommentState], actor: Actor) -> CommentState:
        return self._moderate(comment, actor, CommentStatus.APPROVED)

    def mark_spam(self, comment: Optional[CommentState], actor: Actor) -> CommentState:
        return self._moderate(comment, actor, CommentStatus.SPAM)

    def authorize_delete(self, comment: Optional[CommentState], actor: Actor) -> CommentState:
        """删除不受状态限制，只检查作者或管理员身份。"""
        current = self.require(comment)
        if current.author_id != actor.user_id and not self.is_privileged(actor):
            raise AuthorizationError("You can only delete your own comments")
        return current

    def allowed_actions(self, comment: CommentState, actor: Actor) -> set[ModerationAction]:
        actions: set[ModerationAction] = set()
        is_author = comment.author_id == actor.user_id
        if is_author:
            actions.add(ModerationAction.EDIT)
        if is_author or self.is_privileged(actor):
            actions.add(ModerationAction.DELETE)
        if self.is_privileged(actor):
            actions.update({ModerationAction.APPROVE, ModerationAction.MARK_SPAM})
        return actions

    def _moderate(
        self,
        comment: Optional[CommentState],
        actor: Actor,
        target: CommentStatus,
    ) -> CommentState:
        current = self.require(comment)
        if not self.is_privileged(actor):
            raise AuthorizationError("Admin access required")
        return current.model_copy(update={"status": target})


# 默认状态机实例 (Default machine instance)
moderation = CommentModerationMachine()
