"""Per-IP action counters backing the sliding-window rate limit."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from top1000.models.base import Base, UUIDPrimaryKeyMixin


class ClientAction(UUIDPrimaryKeyMixin, Base):
    """How often a client IP attempted an action inside the current window."""

    __tablename__ = "client_actions"

    ip: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(
        String(20), nullable=False,
        comment="'login', 'register', 'addgame' or 'data'"
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        comment="Time of the latest attempt"
    )

    __table_args__ = (
        UniqueConstraint("ip", "action", name="uq_client_action"),
    )

    def __repr__(self) -> str:
        return f"<ClientAction(ip='{self.ip}', action='{self.action}', count={self.count})>"
