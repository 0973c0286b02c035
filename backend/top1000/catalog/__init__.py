"""Game catalog ingestion from MobyGames."""

from top1000.catalog.base import NormalizedGame, moby_id_from_ident, parse_game
from top1000.catalog.client import MobygamesClient

__all__ = [
    "MobygamesClient",
    "NormalizedGame",
    "moby_id_from_ident",
    "parse_game",
]
