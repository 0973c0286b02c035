"""Game catalog service: MobyGames import and title search."""

from dataclasses import asdict
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.catalog import MobygamesClient, moby_id_from_ident
from top1000.config import settings
from top1000.core.exceptions import InputError, logged_errors
from top1000.models.game import Game
from top1000.schemas.game import GameSearchResponse, GameSearchResult
from top1000.services.client_action_service import ClientActionGuard
from top1000.services.ranking import MAX_PAGE

logger = structlog.get_logger(__name__)

MAX_SEARCH_TERM = 256


class GameService:
    """Adds games to the catalog and searches it."""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[MobygamesClient] = None,
        guard: Optional[ClientActionGuard] = None,
    ):
        self.db = db
        self.client = client or MobygamesClient()
        self.guard = guard or ClientActionGuard(db)
        self.logger = logger.bind(service="game_service")

    @logged_errors("game_add_failed")
    async def add_game(self, ip: str, moby_ident: str) -> Game:
        """Import a game from MobyGames by numeric id or game page URL.

        Raises:
            RateLimitError: too many imports from this address
            InputError: bad identifier, duplicate, or not a standalone game
        """
        await self.guard.check(ip, "addgame")

        moby_id = moby_id_from_ident(moby_ident)

        result = await self.db.execute(select(Game.id).where(Game.moby_id == moby_id))
        if result.scalar_one_or_none():
            raise InputError("Game already in database")

        normalized = await self.client.fetch_game(moby_id)

        game = Game(**asdict(normalized))
        self.db.add(game)
        await self.db.flush()

        self.logger.info("game_added", moby_id=moby_id, title=game.title)
        return game

    async def search(self, term: str, page: int = 1) -> GameSearchResponse:
        """Case-insensitive title search, ordered by title.

        Returns:
            One page of ``SEARCH_RESULTS_MAX`` results and whether more exist
        """
        term = (term or "").strip()
        if not 1 <= len(term) <= MAX_SEARCH_TERM:
            raise InputError("Invalid search term")
        if not 1 <= page <= MAX_PAGE:
            raise InputError("Invalid page")

        per_page = settings.SEARCH_RESULTS_MAX
        stmt = (
            select(Game)
            .where(Game.title.icontains(term, autoescape=True))
            .order_by(Game.title, Game.id)
            .offset((page - 1) * per_page)
            .limit(per_page + 1)
        )
        result = await self.db.execute(stmt)
        games = list(result.scalars().all())

        return GameSearchResponse(
            results=[GameSearchResult.model_validate(g) for g in games[:per_page]],
            more=len(games) > per_page,
        )
