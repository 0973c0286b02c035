"""Game model holding catalog metadata imported from MobyGames."""

from typing import List, Optional

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from top1000.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# Tag dimensions shared by games, vote snapshots and statistics
TAG_DIMENSIONS = ("genres", "gameplay", "perspectives", "settings", "topics")


class Game(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A votable game.

    Rows are written by the catalog ingestion only. The voting core reads
    them for display joins and to snapshot tags onto votes.
    """

    __tablename__ = "games"

    moby_id: Mapped[int] = mapped_column(
        Integer, unique=True, nullable=False, index=True,
        comment="MobyGames game id"
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    year: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Earliest release year over all platforms, 0 if unknown"
    )

    # Images (URLs)
    icon: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    cover: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    screenshot: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # [{"name": "DOS", "year": 1993}, ...]
    platforms: Mapped[List[dict]] = mapped_column(JSON, nullable=False, default=list)

    genres: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    gameplay: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    perspectives: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    settings: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    topics: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def platform_names(self) -> List[str]:
        return [p["name"] for p in self.platforms or [] if p.get("name")]

    def __repr__(self) -> str:
        return f"<Game(id={self.id}, moby_id={self.moby_id}, title='{self.title}')>"
