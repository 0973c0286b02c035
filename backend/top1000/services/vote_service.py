"""Vote service: casting votes, comments, a user's own list and the raw export."""

import uuid
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.core.exceptions import ConsistencyError, InputError, NotFoundError, logged_errors
from top1000.models.game import TAG_DIMENSIONS, Game
from top1000.models.user import VOTER_GROUPS, User
from top1000.models.vote import MAX_COMMENT_LENGTH, MAX_POSITION, Vote

logger = structlog.get_logger(__name__)

EXPORT_FIELDS = (
    "user", "age", "gender", *VOTER_GROUPS,
    "position", "game", "year", "moby_id",
    "genres", "gameplay", "perspectives", "settings", "topics", "platforms",
)


def game_snapshot(game: Game) -> Dict[str, Any]:
    """Vote columns copied from the game at cast time."""
    snapshot: Dict[str, Any] = {
        "game_id": game.id,
        "game_title": game.title,
        "game_year": game.year,
        "game_moby_id": game.moby_id,
        "game_platforms": game.platform_names,
    }
    for dimension in TAG_DIMENSIONS:
        snapshot[f"game_{dimension}"] = list(getattr(game, dimension) or [])
    return snapshot


def user_snapshot(user: User) -> Dict[str, Any]:
    """Vote columns copied from the voter's profile."""
    snapshot: Dict[str, Any] = {"age": user.age, "gender": user.gender}
    snapshot.update(user.groups)
    return snapshot


class VoteService:
    """Handles the per-user ranked list."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="vote_service")

    @logged_errors("vote_cast_failed")
    async def cast_vote(self, user: User, position: int, game_id: uuid.UUID) -> None:
        """Put a game on a list position of the user.

        An existing vote on that position is pointed at the new game and
        keeps its comment; otherwise a new vote is inserted carrying the
        user's current profile. Afterwards exactly one vote exists for
        (user, position).

        Raises:
            InputError: position out of range
            NotFoundError: game does not exist
        """
        if not 1 <= position <= MAX_POSITION:
            raise InputError("Invalid position")

        result = await self.db.execute(select(Game).where(Game.id == game_id))
        game = result.scalar_one_or_none()
        if not game:
            raise NotFoundError("Game", str(game_id))

        snapshot = game_snapshot(game)
        user_id = user.id

        existing = await self._get_vote(user_id, position)

        if existing:
            for key, value in snapshot.items():
                setattr(existing, key, value)
            await self.db.flush()
        else:
            vote = Vote(
                user_id=user_id,
                position=position,
                **user_snapshot(user),
                **snapshot,
            )
            try:
                await self._insert_vote(vote)
            except IntegrityError:
                # Concurrent insert for the same slot: last write wins
                result = await self.db.execute(
                    update(Vote)
                    .where(Vote.user_id == user_id, Vote.position == position)
                    .values(**snapshot)
                )
                if result.rowcount != 1:
                    raise ConsistencyError(
                        f"Vote upsert matched {result.rowcount} rows"
                    )

        self.logger.info(
            "vote_cast",
            user_id=str(user_id),
            position=position,
            game_id=str(game_id),
        )

    async def _get_vote(self, user_id: uuid.UUID, position: int) -> Optional[Vote]:
        result = await self.db.execute(
            select(Vote).where(Vote.user_id == user_id, Vote.position == position)
        )
        return result.scalar_one_or_none()

    async def _insert_vote(self, vote: Vote) -> None:
        """Insert inside a savepoint so a conflict only undoes this row."""
        async with self.db.begin_nested():
            self.db.add(vote)

    @logged_errors("comment_update_failed")
    async def update_comment(self, user_id: uuid.UUID, position: int, comment: str) -> str:
        """Set the comment on the user's vote at ``position``.

        Returns:
            The stored comment

        Raises:
            NotFoundError: the user has no vote on that position
        """
        if not comment or len(comment) > MAX_COMMENT_LENGTH:
            raise InputError("Invalid comment")

        vote = await self._get_vote(user_id, position)
        if not vote:
            raise NotFoundError("Vote", str(position))

        vote.comment = comment
        await self.db.flush()
        return vote.comment

    async def get_user_votes(self, user_id: uuid.UUID) -> List[Dict[str, Any]]:
        """The user's list ordered by position, joined with current game data.

        Votes whose game was removed from the catalog keep their position
        and game id; the game attributes come back as None.
        """
        stmt = (
            select(Vote, Game)
            .outerjoin(Game, Game.id == Vote.game_id)
            .where(Vote.user_id == user_id)
            .order_by(Vote.position)
        )
        result = await self.db.execute(stmt)

        votes = []
        for vote, game in result.all():
            votes.append({
                "position": vote.position,
                "comment": vote.comment,
                "game_id": vote.game_id,
                "title": game.title if game else None,
                "year": game.year if game else None,
                "platforms": game.platforms if game else None,
                "icon": game.icon if game else None,
            })
        return votes

    @logged_errors("vote_export_failed")
    async def export_votes(self) -> List[Dict[str, Any]]:
        """Every vote as a flat row keyed by ``EXPORT_FIELDS``.

        Tag lists are joined with ``|``. Users are identified by id only.
        """
        result = await self.db.execute(select(Vote).order_by(Vote.user_id, Vote.position))

        rows = []
        for vote in result.scalars():
            row: Dict[str, Any] = {
                "user": str(vote.user_id),
                "age": vote.age,
                "gender": vote.gender or "",
                "position": vote.position,
                "game": vote.game_title,
                "year": vote.game_year,
                "moby_id": vote.game_moby_id,
                "platforms": "|".join(vote.game_platforms or []),
            }
            for group in VOTER_GROUPS:
                row[group] = int(bool(getattr(vote, group)))
            for dimension in TAG_DIMENSIONS:
                row[dimension] = "|".join(getattr(vote, f"game_{dimension}") or [])
            rows.append(row)

        self.logger.info("votes_exported", rows=len(rows))
        return rows
