"""Services module for business logic and data operations.

Services own the database access of the voting core (votes, profiles,
ranking, statistics) and of the game catalog.
"""

from top1000.services.scoring import VoteWeight
from top1000.services.ranking import FilterOptions
from top1000.services.vote_service import VoteService
from top1000.services.user_service import UserService
from top1000.services.ranking_service import RankingService
from top1000.services.statistics_service import StatisticsService
from top1000.services.game_service import GameService

__all__ = [
    "VoteWeight",
    "FilterOptions",
    "VoteService",
    "UserService",
    "RankingService",
    "StatisticsService",
    "GameService",
]
