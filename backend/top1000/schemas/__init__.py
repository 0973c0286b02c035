"""Pydantic schemas for the Top1000 API.

All request/response models are defined here for easy import.
"""

from top1000.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from top1000.schemas.health import HealthCheckResponse
from top1000.schemas.auth import (
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    VoterGroups,
)
from top1000.schemas.vote import CastVoteRequest, CommentUpdateRequest, PlatformInfo, UserVoteResponse
from top1000.schemas.ranking import CategoryCount, GameResponse, RankedGame, RankedList, VoteStatistics
from top1000.schemas.game import AddGameRequest, GameSearchResponse, GameSearchResult

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Health
    "HealthCheckResponse",
    # Auth / profile
    "LoginRequest",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "VoterGroups",
    # Votes
    "CastVoteRequest",
    "CommentUpdateRequest",
    "PlatformInfo",
    "UserVoteResponse",
    # Ranking / statistics
    "CategoryCount",
    "GameResponse",
    "RankedGame",
    "RankedList",
    "VoteStatistics",
    # Games
    "AddGameRequest",
    "GameSearchResponse",
    "GameSearchResult",
]
