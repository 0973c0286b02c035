"""Vote and comment Pydantic schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from top1000.models.vote import MAX_COMMENT_LENGTH, MAX_POSITION


class CastVoteRequest(BaseModel):
    """Put a game on one list position of the current user."""
    position: int = Field(ge=1, le=MAX_POSITION)
    game_id: UUID


class CommentUpdateRequest(BaseModel):
    """Set the comment on one of the current user's positions."""
    comment: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)


class PlatformInfo(BaseModel):
    """Release year of a game on one platform."""
    name: str
    year: int = 0


class UserVoteResponse(BaseModel):
    """One entry of the current user's list."""
    model_config = ConfigDict(from_attributes=True)

    position: int
    comment: Optional[str] = None
    game_id: UUID
    title: Optional[str] = None
    year: Optional[int] = None
    platforms: Optional[List[PlatformInfo]] = None
    icon: Optional[str] = None
