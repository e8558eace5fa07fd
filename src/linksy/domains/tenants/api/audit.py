# src/linksy/domains/tenants/api/audit.py
"""
Audit Log API Routes

Read access to the audit trail written by tenant, member and module changes.
Site admins see every tenant; tenant admins only their own.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ....auth import AuthContext, get_tenant_id, require_tenant_admin
from ....repositories import get_audit_log_repository, get_user_repository
from ..constants import DEFAULT_AUDIT_LOG_LIMIT, MAX_AUDIT_LOG_LIMIT

router = APIRouter()


@router.get("")
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_AUDIT_LOG_LIMIT, ge=1, le=MAX_AUDIT_LOG_LIMIT),
    action_type: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_tenant_admin),
):
    offset = (page - 1) * limit
    result = get_audit_log_repository().search(
        tenant_id=None if ctx.is_site_admin else get_tenant_id(ctx),
        action=action_type or None,
        user_id=user_id or None,
        from_date=from_date or None,
        to_date=to_date or None,
        limit=limit,
        offset=offset,
    )

    actor_ids = sorted({row["user_id"] for row in result.data if row.get("user_id")})
    actors = {u["id"]: u for u in get_user_repository().get_many(actor_ids)}
    logs = [
        {
            **row,
            "user": (
                {"email": actors[row["user_id"]].get("email"), "full_name": actors[row["user_id"]].get("full_name")}
                if row.get("user_id") in actors
                else None
            ),
        }
        for row in result.data
    ]

    return {
        "logs": logs,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": result.total_count,
            "pages": math.ceil(result.total_count / limit),
        },
    }
