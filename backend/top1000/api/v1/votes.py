"""Endpoints for the current user's own list."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.dependencies import get_current_user, get_db
from top1000.models.user import User
from top1000.models.vote import MAX_POSITION
from top1000.schemas.common import ApiResponse
from top1000.schemas.vote import CastVoteRequest, CommentUpdateRequest, UserVoteResponse
from top1000.services.cache_service import CacheService, get_cache
from top1000.services.vote_service import VoteService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_votes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's votes ordered by position."""
    service = VoteService(db)
    votes = await service.get_user_votes(current_user.id)

    return ApiResponse(
        status="success",
        data=[UserVoteResponse.model_validate(v).model_dump(mode="json") for v in votes],
    )


@router.put("", response_model=ApiResponse)
async def cast_vote(
    body: CastVoteRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Put a game on one position of the current user's list."""
    service = VoteService(db)
    await service.cast_vote(current_user, body.position, body.game_id)
    await db.commit()
    await cache.invalidate_rankings()

    return ApiResponse(
        status="success",
        data={"position": body.position, "game_id": str(body.game_id)},
    )


@router.put("/{position}/comment", response_model=ApiResponse)
async def update_comment(
    body: CommentUpdateRequest,
    position: int = Path(ge=1, le=MAX_POSITION),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Set the comment on one of the current user's votes."""
    service = VoteService(db)
    comment = await service.update_comment(current_user.id, position, body.comment)
    await db.commit()
    await cache.invalidate_rankings()

    return ApiResponse(
        status="success",
        data={"position": position, "comment": comment},
    )
