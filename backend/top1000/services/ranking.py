"""Ranked-list and statistics engine.

Plain functions over vote rows that have already been read from the
store. The services in ``ranking_service`` and ``statistics_service`` do
the single read; everything here is pure so it can be tested without a
database:

    filter predicate -> group by game -> sort -> paginate
    filter predicate -> unwind tags -> count per dimension
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from top1000.core.exceptions import InputError
from top1000.models.user import GENDERS, VOTER_GROUPS

MAX_PAGE = 99999
MIN_LIMIT = 5
MAX_LIMIT = 100

STAT_DIMENSIONS = ("genres", "gameplay", "perspectives", "settings", "topics", "platforms")


def decade_of(year: int) -> Optional[str]:
    """Decade label such as "1990s", or None for an unknown (0) year."""
    if not year:
        return None
    return f"{year // 10 * 10}s"


@dataclass(frozen=True)
class FilterOptions:
    """Demographic restriction applied to ranking and statistics.

    Every field is optional; an unset field matches every vote.
    """

    gender: Optional[str] = None
    age: Optional[int] = None
    group: Optional[str] = None

    def __post_init__(self):
        if self.gender is not None and self.gender not in GENDERS:
            raise InputError("Filter: invalid gender")
        if self.age is not None and not 1 <= self.age <= 9:
            raise InputError("Filter: invalid age")
        if self.group is not None and self.group not in VOTER_GROUPS:
            raise InputError("Filter: invalid group")

    @property
    def is_empty(self) -> bool:
        return self.gender is None and self.age is None and self.group is None

    def matches(self, vote: Any) -> bool:
        """Predicate over anything exposing the vote snapshot attributes."""
        if self.gender is not None and vote.gender != self.gender:
            return False
        if self.age is not None and vote.age != self.age:
            return False
        if self.group is not None and not getattr(vote, self.group):
            return False
        return True

    def cache_suffix(self) -> str:
        parts = []
        if self.gender:
            parts.append(f"g{self.gender}")
        if self.age is not None:
            parts.append(f"a{self.age}")
        if self.group:
            parts.append(f"gr{self.group}")
        return ":".join(parts) or "all"


@dataclass
class GameTally:
    """Accumulated votes for one game."""

    game_id: UUID
    score: float = 0.0
    votes: int = 0
    comments: List[str] = field(default_factory=list)


def group_votes(
    votes: Iterable[Any],
    weight: Callable[[int], float],
    predicate: Optional[Callable[[Any], bool]] = None,
) -> List[GameTally]:
    """Group votes by game, summing weights and collecting comments.

    ``votes`` must be iterated in insertion order for the comment lists to
    come out in insertion order.

    Args:
        votes: Rows with ``game_id``, ``position`` and ``comment``
        weight: Position -> weight function
        predicate: Optional filter; rows it rejects are skipped

    Returns:
        One tally per game, in first-seen order
    """
    tallies: Dict[UUID, GameTally] = {}
    for vote in votes:
        if predicate is not None and not predicate(vote):
            continue
        tally = tallies.get(vote.game_id)
        if tally is None:
            tally = tallies[vote.game_id] = GameTally(game_id=vote.game_id)
        tally.score += weight(vote.position)
        tally.votes += 1
        if vote.comment:
            tally.comments.append(vote.comment)
    return list(tallies.values())


def rank_tallies(tallies: Iterable[GameTally]) -> List[GameTally]:
    """Order by score descending; equal scores by game id string ascending."""
    by_id = sorted(tallies, key=lambda t: str(t.game_id))
    return sorted(by_id, key=lambda t: t.score, reverse=True)


def validate_paging(page: int, limit: int) -> None:
    if not (isinstance(page, int) and 1 <= page <= MAX_PAGE):
        raise InputError("Invalid page")
    if not (isinstance(limit, int) and MIN_LIMIT <= limit <= MAX_LIMIT):
        raise InputError("Invalid limit")


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total > 0 else 0


def paginate(ranked: Sequence[GameTally], page: int, limit: int) -> Tuple[List[GameTally], int]:
    """Slice one page out of the ranking.

    Returns:
        Tuple of (tallies on the page, total page count)
    """
    validate_paging(page, limit)
    offset = (page - 1) * limit
    return list(ranked[offset:offset + limit]), page_count(len(ranked), limit)


def count_categories(
    votes: Iterable[Any],
    predicate: Optional[Callable[[Any], bool]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Count tag occurrences per statistics dimension.

    Each tag of each vote's game snapshot counts once for that vote, and
    so does the decade of its release year (``decades``, unknown years are
    left out). Within a dimension entries are ordered by count descending,
    then name.

    Args:
        votes: Rows with ``game_<dimension>`` list attributes and ``game_year``
        predicate: Optional filter; rows it rejects are skipped
    """
    counters = {dimension: Counter() for dimension in STAT_DIMENSIONS}
    counters["decades"] = Counter()
    for vote in votes:
        if predicate is not None and not predicate(vote):
            continue
        for dimension in STAT_DIMENSIONS:
            counters[dimension].update(getattr(vote, f"game_{dimension}") or ())
        decade = decade_of(getattr(vote, "game_year", 0))
        if decade:
            counters["decades"][decade] += 1

    return {
        dimension: [
            {"name": name, "count": count}
            for name, count in sorted(counter.items(), key=lambda item: (-item[1], item[0]))
        ]
        for dimension, counter in counters.items()
    }
