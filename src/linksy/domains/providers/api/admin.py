# src/linksy/domains/providers/api/admin.py
"""
Provider Admin API Routes

Duplicate review and merge of providers and of contacts, site admins only.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ....auth import AuthContext, require_site_admin
from ....config import get_config
from ..constants import MAX_DUPLICATE_LIMIT
from ..services import get_contact_merge_service, get_merge_service

router = APIRouter()


class MergeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    primary_provider_id: Optional[str] = Field(None, alias="primaryProviderId")
    merge_provider_id: Optional[str] = Field(None, alias="mergeProviderId")
    field_choices: Optional[Dict[str, str]] = Field(None, alias="fieldChoices")


class ContactMergeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    primary_contact_id: Optional[str] = Field(None, alias="primaryContactId")
    merge_contact_id: Optional[str] = Field(None, alias="mergeContactId")
    provider_id: Optional[str] = Field(None, alias="providerId")


@router.get("/providers/duplicates")
async def find_duplicate_providers(
    threshold: Optional[float] = Query(None, ge=0, le=1),
    limit: Optional[int] = Query(None, ge=1),
    ctx: AuthContext = Depends(require_site_admin),
):
    """Groups of providers with similar names, with counts of what each owns."""
    config = get_config().providers
    threshold = config.duplicate_threshold if threshold is None else threshold
    limit = min(limit or config.duplicate_limit, MAX_DUPLICATE_LIMIT)
    return get_merge_service().find_duplicates(threshold=threshold, limit=limit)


@router.post("/providers/merge")
async def merge_providers(body: MergeRequest, ctx: AuthContext = Depends(require_site_admin)):
    """Fold mergeProviderId into primaryProviderId and delete it."""
    return get_merge_service().merge(body.primary_provider_id, body.merge_provider_id, body.field_choices)


@router.get("/contacts/duplicates")
async def find_duplicate_contacts(
    provider_id: Optional[str] = Query(None),
    ctx: AuthContext = Depends(require_site_admin),
):
    """Active contacts of one provider whose users share an email."""
    return get_contact_merge_service().find_duplicates(provider_id)


@router.post("/contacts/merge")
async def merge_contacts(body: ContactMergeRequest, ctx: AuthContext = Depends(require_site_admin)):
    return get_contact_merge_service().merge(body.primary_contact_id, body.merge_contact_id, body.provider_id)
