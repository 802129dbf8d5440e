"""Usage counters and profile of the current user."""

import logging
from types import SimpleNamespace

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user
from models.user import UserProfile, UserUsageResponse
from services.database.local_store import (
    get_usage_for_user,
    get_user_profile,
    get_user_role_and_tier,
)
from services.permissions import get_permission_set

logger = logging.getLogger(__name__)

router = APIRouter(tags=["usage"])


@router.get("/user-usage", response_model=UserUsageResponse, response_model_by_alias=True)
async def user_usage(current_user: SimpleNamespace = Depends(get_current_user)):
    """Request and document counters next to the limits of the user's role and tier."""
    usage = await get_usage_for_user(current_user.id)

    role_record = await get_user_role_and_tier(current_user.id)
    if not role_record:
        raise HTTPException(status_code=404, detail="Role or subscription not found")

    permissions = get_permission_set(role_record.role, role_record.subscription_tier)
    return UserUsageResponse(
        requests_count=usage.requests_count,
        knowledge_base_docs_count=usage.knowledge_base_docs_count,
        max_requests=permissions.max_requests,
        max_docs=permissions.max_docs,
        max_area=permissions.max_area,
    )


@router.get("/user-profile", response_model=UserProfile, response_model_by_alias=True)
async def user_profile():
    return await get_user_profile()
