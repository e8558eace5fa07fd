# src/linksy/domains/hosts/api/widget.py
"""
Host Widget API Routes

Public: the embeddable widget resolves its host on page load.
"""

from fastapi import APIRouter

from ..services import get_host_service

router = APIRouter()


@router.get("/by-slug/{slug}")
async def get_host_by_slug(slug: str):
    return get_host_service().resolve(slug)
