"""Tag statistics over the votes matching a demographic filter."""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.core.exceptions import logged_errors
from top1000.models.vote import Vote
from top1000.schemas.ranking import VoteStatistics
from top1000.services.ranking import STAT_DIMENSIONS, FilterOptions, count_categories
from top1000.services.ranking_service import vote_filter_clauses

logger = structlog.get_logger(__name__)


class StatisticsService:
    """Counts tags per dimension and release decades over the voted games."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="statistics_service")

    @logged_errors("statistics_failed")
    async def get_statistics(self, filters: Optional[FilterOptions] = None) -> VoteStatistics:
        columns = [getattr(Vote, f"game_{dimension}") for dimension in STAT_DIMENSIONS]
        columns.append(Vote.game_year)
        result = await self.db.execute(
            select(*columns).where(*vote_filter_clauses(filters))
        )
        counts = count_categories(result.all())
        return VoteStatistics(**counts)
