# src/linksy/domains/tickets/api/comments.py
"""
Ticket Comments API Routes
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ....auth import AuthContext, require_auth
from ....errors import ValidationError
from ....repositories import get_ticket_comment_repository, get_user_repository

router = APIRouter()


class CommentCreate(BaseModel):
    content: str = ""
    is_private: bool = False


@router.get("/{ticket_id}/comments")
async def list_comments(ticket_id: str, ctx: AuthContext = Depends(require_auth)):
    """Comments oldest first; private ones are hidden from everyone but site admins."""
    return get_ticket_comment_repository().list_for_ticket(ticket_id, include_private=ctx.is_site_admin)


@router.post("/{ticket_id}/comments")
async def add_comment(ticket_id: str, body: CommentCreate, ctx: AuthContext = Depends(require_auth)):
    content = body.content.strip()
    if not content:
        raise ValidationError("content is required")

    profile = get_user_repository().get_by_id(ctx.user.id) or {}

    comment = get_ticket_comment_repository().create({
        "ticket_id": ticket_id,
        "author_id": ctx.user.id,
        "content": content,
        "is_private": body.is_private,
        "author_name": profile.get("full_name") or ctx.user.email,
        "author_role": profile.get("role") or ctx.user.role,
    })
    return JSONResponse(comment, status_code=201)
