"""Ranked list over all votes, optionally restricted by demographics."""

from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.config import settings
from top1000.core.exceptions import logged_errors
from top1000.models.game import Game
from top1000.models.vote import Vote
from top1000.schemas.ranking import GameResponse, RankedGame, RankedList
from top1000.services.ranking import (
    FilterOptions,
    group_votes,
    paginate,
    rank_tallies,
    validate_paging,
)
from top1000.services.scoring import VoteWeight

logger = structlog.get_logger(__name__)


def vote_filter_clauses(filters: Optional[FilterOptions]) -> list:
    """SQL equivalent of ``FilterOptions.matches`` on the vote snapshot."""
    if filters is None:
        return []
    clauses = []
    if filters.gender is not None:
        clauses.append(Vote.gender == filters.gender)
    if filters.age is not None:
        clauses.append(Vote.age == filters.age)
    if filters.group is not None:
        clauses.append(getattr(Vote, filters.group).is_(True))
    return clauses


class RankingService:
    """Builds pages of the top list."""

    def __init__(self, db: AsyncSession, weight: Optional[VoteWeight] = None):
        self.db = db
        self.weight = weight or VoteWeight()
        self.logger = logger.bind(service="ranking_service")

    @logged_errors("ranked_list_failed")
    async def get_ranked_list(
        self,
        page: int,
        limit: Optional[int] = None,
        filters: Optional[FilterOptions] = None,
    ) -> RankedList:
        """Return one page of games ranked by summed vote weight.

        Args:
            page: 1-based page number
            limit: Games per page, defaults to ``GAMES_PER_PAGE``
            filters: Demographic restriction on the counted votes

        Raises:
            InputError: page or limit out of bounds (checked before any query)
        """
        limit = settings.GAMES_PER_PAGE if limit is None else limit
        validate_paging(page, limit)

        stmt = (
            select(Vote.game_id, Vote.position, Vote.comment)
            .where(*vote_filter_clauses(filters))
            .order_by(Vote.id)
        )
        result = await self.db.execute(stmt)

        ranked = rank_tallies(group_votes(result.all(), self.weight))
        tallies, pages = paginate(ranked, page, limit)

        games = {}
        if tallies:
            game_result = await self.db.execute(
                select(Game).where(Game.id.in_([t.game_id for t in tallies]))
            )
            games = {game.id: game for game in game_result.scalars()}

        data: List[RankedGame] = []
        for tally in tallies:
            game = games.get(tally.game_id)
            data.append(RankedGame(
                score=tally.score,
                votes=tally.votes,
                comments=tally.comments,
                game=GameResponse.model_validate(game) if game else None,
            ))

        self.logger.debug(
            "ranked_list_built",
            page=page,
            limit=limit,
            games=len(ranked),
            filtered=filters is not None and not filters.is_empty,
        )
        return RankedList(data=data, pages=pages, limit=limit)
