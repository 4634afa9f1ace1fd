"""
审计日志服务 (Audit Log Service)

所有后台关键操作使用同一个接口写审计记录：
    - 站点设置：update_settings / delete_setting / initialize_settings
    - 评论审核：approve_comment / spam_comment / delete_comment
    - 账户安全：login / reset_password

记录只追加；使用 flush() 而非 commit()，由调用方决定事务边界。
"""
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog


def client_ip(request: Request) -> Optional[str]:
    """请求来源 IP，没有客户端信息时返回 None。"""
    return request.client.host if request.client else None


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    detail: Optional[str] = None,
    ip_address: Optional[str] = None,
):
    """
    统一审计日志记录器 (Unified Audit Log Recorder)

    Args:
        db: 异步数据库会话
        user_id: 操作用户ID
        action: 操作类型，如 approve_comment、update_settings
        resource_type: 资源类型，如 comment、settings、user
        resource_id: 可选，被操作资源的ID
        detail: 可选，JSON格式的变更详情（不要记录密码等敏感数据）
        ip_address: 可选，客户端IP地址

    使用示例:
        await log_audit(db, admin.id, "approve_comment", "comment", comment_id,
                        None, client_ip(request))
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        detail=detail,
        ip_address=ip_address,
    )
    db.add(entry)

    # 只 flush，不提交：主事务回滚时审计记录随之回滚
    await db.flush()
