# src/linksy/domains/tenants/api/members.py
"""
Tenant Members API Routes
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ....auth import AuthContext, ensure_tenant_access, require_auth, require_tenant_admin
from ....errors import PermissionDeniedError
from ....repositories import get_tenant_user_repository, get_user_repository
from ..services import get_tenant_service

router = APIRouter()


class RoleUpdate(BaseModel):
    role: str


@router.get("/{tenant_id}/users")
async def list_members(tenant_id: str, ctx: AuthContext = Depends(require_auth)):
    """Members with their user profile; any member of the tenant may look."""
    members_repo = get_tenant_user_repository()
    if not ctx.is_site_admin and not members_repo.get_membership(ctx.user.id, tenant_id):
        raise PermissionDeniedError("Forbidden")

    members = members_repo.list_members(tenant_id)
    profiles = {u["id"]: u for u in get_user_repository().get_many([m["user_id"] for m in members])}
    return [{**m, "user": profiles.get(m["user_id"])} for m in members]


@router.patch("/{tenant_id}/users/{user_id}")
async def update_member_role(
    tenant_id: str,
    user_id: str,
    body: RoleUpdate,
    ctx: AuthContext = Depends(require_tenant_admin),
):
    ensure_tenant_access(ctx, tenant_id)
    return get_tenant_service().update_member_role(ctx, tenant_id, user_id, body.role)


@router.delete("/{tenant_id}/users/{user_id}")
async def remove_member(tenant_id: str, user_id: str, ctx: AuthContext = Depends(require_tenant_admin)):
    ensure_tenant_access(ctx, tenant_id)
    get_tenant_service().remove_member(ctx, tenant_id, user_id)
    return {"success": True}
