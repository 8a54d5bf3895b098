"""
Activity log writer.

Log writes are best-effort: a failure is reported through the application
logger and never fails the request that triggered it. Call ``log_activity``
only after the primary change has been committed. The row is written in a
savepoint, so a failed write leaves the caller's loaded objects intact.
"""
from typing import Any, Dict, List, Optional, Union

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.core.config import settings
from lms.core.logging_config import logger
from lms.models.log import Log
from lms.models.user import User
from lms.modules.auth.principal import Principal


def request_context(request: Optional[Request]) -> Dict[str, Any]:
    if request is None:
        return {}
    return {
        "ip": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
    }


async def log_activity(
    db: AsyncSession,
    actor: Union[Principal, str, None],
    action: str,
    context: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Optional[Log]:
    """Append an activity record for ``actor`` (principal or user id)"""
    ctx = {**request_context(request), **(context or {})}

    if isinstance(actor, Principal):
        user_id = actor.user_id
        if actor.is_superadmin:
            ctx["actor"] = "superadmin"
    else:
        user_id = actor

    entry = Log(user_id=user_id, action=action, context=ctx)
    try:
        async with db.begin_nested():
            db.add(entry)
        await db.commit()
    except SQLAlchemyError as e:
        logger.warning(
            f"Failed to write activity log {action}: {e}",
            extra={"event_type": "audit_write_failed", "audit_action": action},
        )
        return None
    return entry


async def recent_activity(db: AsyncSession, limit: int, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest log entries (optionally one user's), with the actor's name resolved"""
    query = (
        select(Log, User.name)
        .outerjoin(User, Log.user_id == User.id)
        .order_by(Log.timestamp.desc())
        .limit(limit)
    )
    if user_id is not None:
        query = query.where(Log.user_id == user_id)
    return [describe_log(log, user_name) for log, user_name in (await db.execute(query)).all()]


def describe_log(log: Log, user_name: Optional[str] = None) -> Dict[str, Any]:
    context = log.context or {}
    if user_name is None and context.get("actor") == "superadmin":
        user_name = settings.SUPERADMIN_NAME
    return {
        "id": log.id,
        "timestamp": log.timestamp,
        "action": log.action,
        # USER_LOGIN -> category USER, message "user login"
        "category": log.action.split("_")[0],
        "message": log.action.replace("_", " ").lower(),
        "user_id": log.user_id,
        "user_name": user_name,
        "metadata": context,
    }
