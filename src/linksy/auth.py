# src/linksy/auth.py
"""Authentication and authorization dependencies for Linksy routes.

Sign-in itself is handled by Supabase Auth. A request carries the Supabase
access token either as a bearer token or in the `sb-access-token` cookie; we
resolve it to a user, then load the profile role and tenant membership.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from .errors import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"


@dataclass
class AuthUser:
    id: str
    email: str
    role: str  # site_admin | tenant_admin | user


@dataclass
class TenantMembership:
    tenant_id: str
    role: str  # admin | member


@dataclass
class AuthContext:
    user: AuthUser
    tenant_membership: Optional[TenantMembership] = None

    @property
    def is_site_admin(self) -> bool:
        return self.user.role == "site_admin"

    @property
    def is_tenant_admin(self) -> bool:
        return self.tenant_membership is not None and self.tenant_membership.role == "admin"


def _extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def get_auth_context(request: Request) -> AuthContext:
    """Resolve the caller; 401 without a valid session, 403 without a profile."""
    from .infrastructure.supabase_client import get_supabase_client
    from .repositories import get_tenant_user_repository, get_user_repository

    token = _extract_token(request)
    if not token:
        raise AuthenticationError("Unauthorized")

    client = get_supabase_client()
    if client is None:
        raise AuthenticationError("Unauthorized")

    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.info(f"Rejected access token: {e}")
        raise AuthenticationError("Unauthorized") from e

    auth_user = getattr(response, "user", None)
    if auth_user is None:
        raise AuthenticationError("Unauthorized")

    profile = get_user_repository().get_by_id(auth_user.id)
    if not profile:
        raise PermissionDeniedError("User profile not found")

    membership = get_tenant_user_repository().get_membership(auth_user.id)

    return AuthContext(
        user=AuthUser(
            id=auth_user.id,
            email=profile.get("email") or getattr(auth_user, "email", "") or "",
            role=profile.get("role") or "user",
        ),
        tenant_membership=TenantMembership(
            tenant_id=membership["tenant_id"],
            role=membership.get("role", "member"),
        ) if membership else None,
    )


async def require_auth(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    return ctx


async def require_site_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not ctx.is_site_admin:
        raise PermissionDeniedError("Forbidden - Site admin access required")
    return ctx


async def require_tenant_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not ctx.is_site_admin and not ctx.is_tenant_admin:
        raise PermissionDeniedError("Forbidden - Admin access required")
    return ctx


async def require_tenant_membership(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if ctx.tenant_membership is None:
        raise PermissionDeniedError("User not associated with any organization")
    return ctx


def ensure_tenant_access(ctx: AuthContext, tenant_id: str) -> None:
    """Site admins see every tenant; everyone else only their own."""
    if ctx.is_site_admin:
        return
    if get_tenant_id(ctx) != tenant_id:
        raise PermissionDeniedError("Forbidden - Access to this organization denied")


def get_tenant_id(ctx: AuthContext) -> Optional[str]:
    return ctx.tenant_membership.tenant_id if ctx.tenant_membership else None


def can_manage_tenant(ctx: AuthContext) -> bool:
    return ctx.is_site_admin or ctx.is_tenant_admin


def can_manage_resource(ctx: AuthContext, owner_id: str) -> bool:
    return ctx.user.id == owner_id or ctx.is_site_admin or ctx.is_tenant_admin
