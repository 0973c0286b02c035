"""Per-IP action limits (login, register, addgame, data export).

Each (ip, action) pair has a counter row. Rows whose latest attempt is
older than the action's window are discarded before the check, so a
client is blocked for as long as it keeps trying inside the window.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.config import settings
from top1000.core.exceptions import RateLimitError, logged_errors
from top1000.models.client_action import ClientAction

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClientActionGuard:
    """Sliding-window attempt counter keyed by (ip, action)."""

    def __init__(
        self,
        db: AsyncSession,
        limits: Optional[Dict[str, Tuple[int, int]]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the guard.

        Args:
            db: Async database session
            limits: action -> (max tries, window minutes); defaults to settings
            clock: Source of the current time
        """
        self.db = db
        self.limits = limits if limits is not None else settings.get_ipblock_limits()
        self.clock = clock
        self.logger = logger.bind(service="client_action_guard")

    @logged_errors("client_action_check_failed")
    async def check(self, ip: str, action: str) -> None:
        """Record an attempt, or raise RateLimitError if the client is blocked.

        The counter is committed right away so that a request failing
        afterwards still counts as an attempt.
        """
        max_tries, minutes = self.limits[action]
        now = self.clock()

        await self.db.execute(
            delete(ClientAction)
            .where(
                ClientAction.action == action,
                ClientAction.timestamp <= now - timedelta(minutes=minutes),
            )
            .execution_options(synchronize_session=False)
        )

        result = await self.db.execute(
            select(ClientAction).where(
                ClientAction.ip == ip,
                ClientAction.action == action,
            )
        )
        record = result.scalar_one_or_none()

        if record is not None and record.count >= max_tries:
            await self.db.commit()
            self.logger.info("client_action_blocked", ip=ip, action=action, count=record.count)
            raise RateLimitError(action, max_tries, minutes)

        if record is None:
            self.db.add(ClientAction(ip=ip, action=action, count=1, timestamp=now))
        else:
            record.count += 1
            record.timestamp = now

        await self.db.commit()
