"""Vote weighting: maps a list position to the score it contributes.

A linear distribution is assumed, from ``max_weight`` for the first place
down to 1 for the last counted place (``votes_per_user``)::

    weight(position) = N + M * position
    M = (1 - max_weight) / (P - 1)
    N = (P * max_weight - 1) / (P - 1)

Positions beyond ``votes_per_user`` (users may rank up to 100 games) are
clamped to the last counted place and therefore weigh 1.
"""

from dataclasses import dataclass, field

from top1000.config import settings


@dataclass(frozen=True)
class VoteWeight:
    """Linear position -> weight function.

    Attributes:
        votes_per_user: P, the last position that still earns more than the floor
        max_weight: Weight of position 1
    """

    votes_per_user: int = field(default_factory=lambda: settings.VOTES_PER_USER)
    max_weight: float = field(default_factory=lambda: float(settings.MAX_VOTE_WEIGHT))

    def __post_init__(self):
        if self.votes_per_user < 1:
            raise ValueError("votes_per_user must be at least 1")
        if self.max_weight < 1:
            raise ValueError("max_weight must be at least 1")

    def __call__(self, position: int) -> float:
        p = self.votes_per_user
        if p == 1:
            return float(self.max_weight)
        position = min(max(position, 1), p)
        # Same line as N + M * position, arranged so both ends come out exact
        return ((p - position) * self.max_weight + (position - 1)) / (p - 1)
