"""SQLAlchemy models for Top1000.

All models are imported here so Base.metadata knows every table.
"""

from top1000.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from top1000.models.user import User, GENDERS, VOTER_GROUPS
from top1000.models.game import Game, TAG_DIMENSIONS
from top1000.models.vote import Vote, MAX_POSITION, MAX_COMMENT_LENGTH
from top1000.models.client_action import ClientAction

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "GENDERS",
    "VOTER_GROUPS",
    "Game",
    "TAG_DIMENSIONS",
    "Vote",
    "MAX_POSITION",
    "MAX_COMMENT_LENGTH",
    "ClientAction",
]
