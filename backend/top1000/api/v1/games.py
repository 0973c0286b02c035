"""Game catalog endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.dependencies import get_client_ip, get_current_user, get_db
from top1000.models.user import User
from top1000.schemas.common import ApiResponse
from top1000.schemas.game import AddGameRequest
from top1000.schemas.ranking import GameResponse
from top1000.services.game_service import MAX_SEARCH_TERM, GameService
from top1000.services.ranking import MAX_PAGE

router = APIRouter()


@router.post("", response_model=ApiResponse, status_code=201)
async def add_game(
    body: AddGameRequest,
    ip: str = Depends(get_client_ip),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Import a game from MobyGames. Requires authentication."""
    service = GameService(db)
    game = await service.add_game(ip, body.moby_ident)

    return ApiResponse(
        status="success",
        data=GameResponse.model_validate(game).model_dump(mode="json"),
    )


@router.get("/search", response_model=ApiResponse)
async def search_games(
    search: str = Query(..., min_length=1, max_length=MAX_SEARCH_TERM),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Search the catalog by title for the vote autocomplete."""
    service = GameService(db)
    result = await service.search(search, page)

    return ApiResponse(status="success", data=result.model_dump(mode="json"))
