# src/linksy/domains/providers/api/notes.py
"""
Provider Notes API Routes

Private notes are visible only to site admins and their author.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ....auth import AuthContext, require_auth
from ....errors import NotFoundError, PermissionDeniedError, ValidationError
from ....repositories import get_note_repository
from ..constants import NOTE_TYPES

router = APIRouter()


class NoteCreate(BaseModel):
    note_type: Optional[str] = None
    content: Optional[str] = None
    is_private: bool = False
    attachments: Optional[List[Dict[str, Any]]] = None


class NoteUpdate(BaseModel):
    note_type: Optional[str] = None
    content: Optional[str] = None
    is_private: Optional[bool] = None


def visible_notes(ctx: AuthContext, notes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if ctx.is_site_admin:
        return notes
    return [n for n in notes if not n.get("is_private") or n.get("user_id") == ctx.user.id]


def load_own_note(ctx: AuthContext, provider_id: str, note_id: str) -> Dict[str, Any]:
    note = get_note_repository().get_by_id(note_id)
    if not note or note.get("provider_id") != provider_id:
        raise NotFoundError("Note not found")
    if note.get("user_id") != ctx.user.id and not ctx.is_site_admin:
        raise PermissionDeniedError("You can only edit your own notes")
    return note


@router.get("/{provider_id}/notes")
async def list_notes(provider_id: str, ctx: AuthContext = Depends(require_auth)):
    return {"notes": visible_notes(ctx, get_note_repository().list_for_provider(provider_id))}


@router.post("/{provider_id}/notes")
async def create_note(provider_id: str, body: NoteCreate, ctx: AuthContext = Depends(require_auth)):
    if not body.note_type or not body.content:
        raise ValidationError("note_type and content are required")
    if body.note_type not in NOTE_TYPES:
        raise ValidationError("Invalid note_type")

    row = {
        "provider_id": provider_id,
        "user_id": ctx.user.id,
        "note_type": body.note_type,
        "content": body.content,
        "is_private": body.is_private,
    }
    if body.attachments is not None:
        row["attachments"] = body.attachments

    return JSONResponse(get_note_repository().create(row), status_code=201)


@router.patch("/{provider_id}/notes/{note_id}")
async def update_note(provider_id: str, note_id: str, body: NoteUpdate, ctx: AuthContext = Depends(require_auth)):
    if not body.note_type and not body.content and body.is_private is None:
        raise ValidationError("note_type, content, or is_private is required")
    if body.note_type and body.note_type not in NOTE_TYPES:
        raise ValidationError("Invalid note_type")

    load_own_note(ctx, provider_id, note_id)

    updates: Dict[str, Any] = {}
    if body.note_type:
        updates["note_type"] = body.note_type
    if body.content:
        updates["content"] = body.content
    if body.is_private is not None:
        updates["is_private"] = body.is_private

    return get_note_repository().update(note_id, updates)


@router.delete("/{provider_id}/notes/{note_id}")
async def delete_note(provider_id: str, note_id: str, ctx: AuthContext = Depends(require_auth)):
    load_own_note(ctx, provider_id, note_id)
    get_note_repository().delete(note_id)
    return {"success": True}
