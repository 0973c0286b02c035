"""Vote model: one ranked slot of one user, with denormalized snapshots."""

import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from top1000.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from top1000.models.user import User

MAX_POSITION = 100
MAX_COMMENT_LENGTH = 3000


class Vote(TimestampMixin, Base):
    """A user's pick for one list position.

    The user's demographics are copied onto the row so the ranking and
    statistics queries never join ``users``; a profile update rewrites them
    on every row of that user. The game tags are copied when the vote is
    cast and stay as they were when the catalog changes later.
    """

    __tablename__ = "votes"

    # Integer key doubles as insertion order for comment listing
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position: Mapped[int] = mapped_column(
        SmallInteger, nullable=False,
        comment="Rank slot 1-100, 1 = favourite"
    )
    # No foreign key: a vote outlives a removed catalog row
    game_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # User snapshot
    age: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    gamer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    journalist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scientist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    critic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    wasted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Game snapshot
    game_title: Mapped[str] = mapped_column(String(500), nullable=False)
    game_year: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    game_moby_id: Mapped[int] = mapped_column(Integer, nullable=False)
    game_genres: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    game_gameplay: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    game_perspectives: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    game_settings: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    game_topics: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    game_platforms: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("user_id", "position", name="uq_vote_user_position"),
        Index("idx_votes_demographics", "gender", "age"),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="votes")

    def __repr__(self) -> str:
        return f"<Vote(user={self.user_id}, position={self.position}, game={self.game_id})>"
