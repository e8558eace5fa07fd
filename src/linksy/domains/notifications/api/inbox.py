# src/linksy/domains/notifications/api/inbox.py
"""
Notification inbox routes: the caller's own notifications only.
"""

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ....auth import AuthContext, require_auth
from ....errors import NotFoundError, ValidationError
from ....repositories import get_notification_repository
from ..constants import DEFAULT_NOTIFICATION_LIMIT

router = APIRouter()


class MarkReadRequest(BaseModel):
    notification_ids: Optional[List[str]] = None
    mark_all: bool = False


class ToggleReadRequest(BaseModel):
    read: bool = True


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_NOTIFICATION_LIMIT, ge=1, le=100),
    unread_only: bool = Query(False),
    ctx: AuthContext = Depends(require_auth),
):
    """List the caller's notifications, newest first."""
    offset = (page - 1) * limit
    result = get_notification_repository().list_for_user(
        ctx.user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return {
        "notifications": result.data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": result.total_count,
            "pages": math.ceil(result.total_count / limit),
        },
    }


@router.patch("")
async def mark_notifications_read(body: MarkReadRequest, ctx: AuthContext = Depends(require_auth)):
    """Mark specific notifications (or all of them) as read."""
    repo = get_notification_repository()
    if body.mark_all:
        repo.mark_all_read(ctx.user.id)
        return {"success": True}

    if body.notification_ids is None:
        raise ValidationError("notification_ids array is required")

    repo.mark_many_read(body.notification_ids, ctx.user.id)
    return {"success": True}


@router.patch("/{notification_id}")
async def toggle_notification_read(
    notification_id: str,
    body: ToggleReadRequest,
    ctx: AuthContext = Depends(require_auth),
):
    updated = get_notification_repository().set_read(notification_id, ctx.user.id, body.read)
    if not updated:
        raise NotFoundError("Notification not found")
    return {"success": True, "notification": updated[0]}
