"""User model for authentication and voter demographics."""

from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from top1000.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from top1000.models.vote import Vote

GENDERS = ("female", "male", "other")
VOTER_GROUPS = ("gamer", "journalist", "scientist", "critic", "wasted")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Registered voter.

    Holds credentials and the demographic profile that every one of the
    user's votes carries a copy of.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True,
        comment="User email address (unique)"
    )
    hashed_password: Mapped[str] = mapped_column(
        String(128), nullable=False,
        comment="bcrypt hashed password"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
        comment="Whether user account is active"
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="Last login timestamp"
    )

    # Demographics
    age: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=0,
        comment="Age bracket 0-9, 0 = not stated"
    )
    gender: Mapped[Optional[str]] = mapped_column(
        String(10), nullable=True,
        comment="'female', 'male', 'other' or NULL"
    )
    gamer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    journalist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scientist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    critic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    wasted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    votes: Mapped[List["Vote"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def groups(self) -> Dict[str, bool]:
        return {group: bool(getattr(self, group)) for group in VOTER_GROUPS}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
