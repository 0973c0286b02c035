"""Game catalog request/response schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from top1000.schemas.vote import PlatformInfo


class AddGameRequest(BaseModel):
    """Import a game from MobyGames by id or game page URL."""
    moby_ident: str = Field(min_length=1, max_length=256)


class GameSearchResult(BaseModel):
    """Autocomplete entry."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    year: int
    icon: Optional[str] = None
    platforms: List[PlatformInfo] = []


class GameSearchResponse(BaseModel):
    """A page of autocomplete results."""
    results: List[GameSearchResult] = []
    more: bool = False
