"""Voter profile endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.dependencies import get_current_user, get_db
from top1000.models.user import User
from top1000.schemas.auth import ProfileResponse, ProfileUpdateRequest
from top1000.schemas.common import ApiResponse
from top1000.services.cache_service import CacheService, get_cache
from top1000.services.user_service import UserService

router = APIRouter()


@router.get("/me/profile", response_model=ApiResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Get the demographic profile of the current user."""
    return ApiResponse(
        status="success",
        data=ProfileResponse.model_validate(current_user).model_dump(mode="json"),
    )


@router.put("/me/profile", response_model=ApiResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Replace the profile on the user and on every vote of the user."""
    service = UserService(db)
    await service.update_profile(
        user_id=current_user.id,
        age=body.age,
        gender=body.gender,
        groups=body.groups.model_dump(),
    )
    await cache.invalidate_rankings()

    return ApiResponse(
        status="success",
        data=ProfileResponse(
            age=body.age, gender=body.gender, groups=body.groups
        ).model_dump(mode="json"),
    )
