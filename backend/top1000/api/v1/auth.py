"""Authentication API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.core.exceptions import AuthError
from top1000.dependencies import get_client_ip, get_current_user, get_db
from top1000.models.user import User
from top1000.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from top1000.schemas.common import ApiResponse
from top1000.services.cache_service import CacheService, get_cache
from top1000.services.user_service import UserService, create_access_token

router = APIRouter()


@router.post("/register", response_model=ApiResponse, status_code=201)
async def register(
    body: RegisterRequest,
    ip: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db),
):
    """Register a new user account."""
    service = UserService(db)
    user = await service.register(ip=ip, email=body.email, password=body.password)

    token = create_access_token(user.id)
    return ApiResponse(
        status="success",
        data={
            "user": UserResponse.model_validate(user).model_dump(mode="json"),
            "token": TokenResponse(access_token=token).model_dump(),
        },
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    body: LoginRequest,
    ip: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db),
):
    """Login with email and password."""
    service = UserService(db)
    user = await service.authenticate(ip=ip, email=body.email, password=body.password)

    if not user:
        raise AuthError("Invalid email or password")

    token = create_access_token(user.id)
    return ApiResponse(
        status="success",
        data={
            "user": UserResponse.model_validate(user).model_dump(mode="json"),
            "token": TokenResponse(access_token=token).model_dump(),
        },
    )


@router.get("/me", response_model=ApiResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user info."""
    return ApiResponse(
        status="success",
        data=UserResponse.model_validate(current_user).model_dump(mode="json"),
    )


@router.delete("/me", response_model=ApiResponse)
async def delete_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Delete the current account and every vote it cast."""
    user_id = current_user.id
    service = UserService(db)
    votes_deleted = await service.delete_user(user_id)
    await cache.invalidate_rankings()

    return ApiResponse(
        status="success",
        data={"user_id": str(user_id), "votes_deleted": votes_deleted},
    )
