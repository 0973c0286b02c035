"""Seed the games table from MobyGames.

Imports every given MobyGames id (or game page URL) that is not in the
database yet. Running it again skips games that already exist.

Usage:
    python scripts/seed_games.py 1068 "https://www.mobygames.com/game/1/"
    python scripts/seed_games.py --file ids.txt
"""

import argparse
import asyncio
import os
import sys
from dataclasses import asdict

# Add backend to path so we can import top1000 modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from sqlalchemy import select

from top1000.catalog import MobygamesClient, moby_id_from_ident
from top1000.core.exceptions import CatalogError, InputError
from top1000.db.session import async_session_factory
from top1000.models.game import Game


async def seed_games(idents: list[str]):
    """Fetch and store the given games, one MobyGames request at a time."""
    print(f"\n{'='*60}")
    print(f"  Seeding Games ({len(idents)} requested)")
    print(f"{'='*60}\n")

    client = MobygamesClient()
    added_count = 0
    skipped_count = 0
    failed_count = 0

    async with async_session_factory() as session:
        for ident in idents:
            try:
                moby_id = moby_id_from_ident(ident)
            except InputError as e:
                print(f"  ❌ {ident!r}: {e.message}")
                failed_count += 1
                continue

            result = await session.execute(select(Game.id).where(Game.moby_id == moby_id))
            if result.scalar_one_or_none():
                print(f"  ⏭️  Game {moby_id} already exists, skipping")
                skipped_count += 1
                continue

            try:
                normalized = await client.fetch_game(moby_id)
            except (InputError, CatalogError) as e:
                print(f"  ❌ Game {moby_id}: {e.message}")
                failed_count += 1
                continue

            session.add(Game(**asdict(normalized)))
            await session.commit()
            print(f"  ✅ Added game: {normalized.title} ({normalized.year or 'unknown year'})")
            added_count += 1

    print(f"\n{'='*60}")
    print(f"  Seeding Complete")
    print(f"{'='*60}")
    print(f"  ✅ Added: {added_count} games")
    print(f"  ⏭️  Skipped: {skipped_count} games (already exist)")
    print(f"  ❌ Failed: {failed_count} games\n")


def read_idents(args: argparse.Namespace) -> list[str]:
    idents = list(args.idents)
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            idents.extend(line.strip() for line in f if line.strip() and not line.startswith("#"))
    return idents


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import games from MobyGames")
    parser.add_argument("idents", nargs="*", help="MobyGames ids or game page URLs")
    parser.add_argument("--file", help="Text file with one id or URL per line")
    args = parser.parse_args()

    idents = read_idents(args)
    if not idents:
        parser.error("no games given")
    asyncio.run(seed_games(idents))
