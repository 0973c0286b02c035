"""Ranked list and statistics schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from top1000.schemas.vote import PlatformInfo


class GameResponse(BaseModel):
    """Display attributes of a game joined into list entries."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    moby_id: int
    title: str
    description: str = ""
    year: int = 0
    icon: Optional[str] = None
    cover: Optional[str] = None
    screenshot: Optional[str] = None
    platforms: List[PlatformInfo] = []
    genres: List[str] = []
    gameplay: List[str] = []
    perspectives: List[str] = []
    settings: List[str] = []
    topics: List[str] = []


class RankedGame(BaseModel):
    """One entry of the top list."""

    score: float
    votes: int
    comments: List[str] = []
    game: Optional[GameResponse] = None


class RankedList(BaseModel):
    """One page of the top list."""

    data: List[RankedGame] = []
    pages: int = 0
    limit: int


class CategoryCount(BaseModel):
    """Number of votes carrying one tag."""

    name: str
    count: int


class VoteStatistics(BaseModel):
    """Tag counts per category dimension."""

    genres: List[CategoryCount] = []
    gameplay: List[CategoryCount] = []
    perspectives: List[CategoryCount] = []
    settings: List[CategoryCount] = []
    topics: List[CategoryCount] = []
    platforms: List[CategoryCount] = []
    decades: List[CategoryCount] = []
