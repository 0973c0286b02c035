"""MobyGames game data normalization.

Turns one entry of the MobyGames ``/games?format=normal`` response into a
``NormalizedGame`` holding exactly the columns of the ``games`` table.
"""

import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from top1000.core.exceptions import CatalogError, InputError

# MobyGames genre_category_id -> tag dimension
GENRE_CATEGORIES = {
    1: "genres",        # Basic Genres
    2: "perspectives",  # Perspective
    4: "gameplay",      # Gameplay
    8: "topics",        # Narrative Theme/Topic
    10: "settings",     # Setting
}

# Basic genre ids of entries that are not games of their own
REJECTED_GENRES = {
    62: "No DLCs/Addons",
    76: "No Compilations",
    187: "No Special Editions",
}

DESCRIPTION_MAX = 400
DESCRIPTION_FALLBACK = 350

_YEAR_RE = re.compile(r"[1-9][0-9]{3}")
_SPACE_RE = re.compile(r"\s+")
_GAME_URL_RE = re.compile(
    r"^https?://(?:www\.)?mobygames\.com/game/(\d+)(?:/[^?#]*)?(?:[?#].*)?$",
    re.IGNORECASE,
)


@dataclass
class NormalizedGame:
    """Game data ready to be stored as a ``Game`` row."""

    moby_id: int
    title: str
    description: str = ""
    year: int = 0
    icon: Optional[str] = None
    cover: Optional[str] = None
    screenshot: Optional[str] = None
    platforms: List[Dict[str, Any]] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    gameplay: List[str] = field(default_factory=list)
    perspectives: List[str] = field(default_factory=list)
    settings: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.moby_id or self.moby_id < 1:
            raise ValueError("moby_id must be positive")
        if not self.title:
            raise ValueError("title is required")


def moby_id_from_ident(ident: str) -> int:
    """Extract the MobyGames game id from a numeric id or a game page URL.

    Examples:
        "1234" -> 1234
        "https://www.mobygames.com/game/1234/doom/" -> 1234

    Raises:
        InputError: neither a positive id nor a game URL
    """
    ident = (ident or "").strip()
    if ident.isdigit():
        moby_id = int(ident)
    else:
        match = _GAME_URL_RE.match(ident)
        if not match:
            raise InputError("Invalid MobyGames id or URL")
        moby_id = int(match.group(1))

    if moby_id < 1:
        raise InputError("Invalid MobyGames id or URL")
    return moby_id


def parse_description(html: Any) -> str:
    """First paragraph of the description as plain text, shorter than 400 chars.

    Long paragraphs are cut after the last full sentence that ends before
    400 characters, or at 350 characters if there is no sentence break.
    """
    if not isinstance(html, str) or not html:
        return ""

    text = html
    for marker in ("</p>", "<br"):
        idx = text.find(marker)
        if idx != -1:
            text = text[:idx]
    text = BeautifulSoup(text, "html.parser").get_text()
    text = _SPACE_RE.sub(" ", text)

    if len(text) >= DESCRIPTION_MAX:
        length = DESCRIPTION_FALLBACK
        idx = text.find(". ")
        if idx != -1:
            length = idx + 1
            while True:
                idx = text.find(". ", length + 1)
                if idx == -1 or idx + 1 >= DESCRIPTION_MAX:
                    break
                length = idx + 1
        text = text[:length]
    return text


def parse_genres(genres: Any) -> Dict[str, List[str]]:
    """Split MobyGames genres into the five tag dimensions.

    Raises:
        InputError: the entry is a DLC, compilation or special edition
        CatalogError: malformed genre data
    """
    tags: Dict[str, List[str]] = {dimension: [] for dimension in GENRE_CATEGORIES.values()}
    if not isinstance(genres, list):
        return tags

    for genre in genres:
        if (
            not isinstance(genre, dict)
            or not isinstance(genre.get("genre_category_id"), int)
            or not isinstance(genre.get("genre_name"), str)
        ):
            raise CatalogError("Unexpected genre data")

        category = genre["genre_category_id"]
        if category == 1 and genre.get("genre_id") in REJECTED_GENRES:
            raise InputError(REJECTED_GENRES[genre["genre_id"]])

        dimension = GENRE_CATEGORIES.get(category)
        if dimension:
            tags[dimension].append(genre["genre_name"])
    return tags


def parse_platforms(platforms: Any) -> Tuple[List[Dict[str, Any]], int]:
    """Platform list with release years, and the earliest year overall.

    Release dates come in mixed formats ("04-1988", "1999", ...); a date
    counts only if it contains exactly one four digit year.

    Returns:
        Tuple of ([{"name", "year"}], earliest year or 0)

    Raises:
        CatalogError: malformed platform data
    """
    result: List[Dict[str, Any]] = []
    if not isinstance(platforms, list):
        return result, 0

    years = []
    for platform in platforms:
        if (
            not isinstance(platform, dict)
            or not isinstance(platform.get("platform_name"), str)
            or not isinstance(platform.get("first_release_date"), str)
        ):
            raise CatalogError("Unexpected platform data")

        year = 0
        found = _YEAR_RE.findall(platform["first_release_date"])
        if len(found) == 1:
            year = int(found[0])
            years.append(year)

        result.append({"name": platform["platform_name"], "year": year})

    return result, min(years) if years else 0


def parse_images(info: Dict[str, Any], rng: random.Random = random) -> Dict[str, Optional[str]]:
    """Cover, icon (cover thumbnail) and one random sample screenshot URL."""
    images: Dict[str, Optional[str]] = {"icon": None, "cover": None, "screenshot": None}

    screenshots = [
        s["image"] for s in info.get("sample_screenshots") or []
        if isinstance(s, dict) and isinstance(s.get("image"), str) and s["image"]
    ]
    if screenshots:
        images["screenshot"] = rng.choice(screenshots)

    cover = info.get("sample_cover")
    if isinstance(cover, dict) and isinstance(cover.get("image"), str) and cover["image"]:
        images["cover"] = cover["image"]
        thumbnail = cover.get("thumbnail_image")
        images["icon"] = thumbnail if isinstance(thumbnail, str) and thumbnail else cover["image"]

    return images


def parse_game(info: Any, moby_id: int) -> NormalizedGame:
    """Build a NormalizedGame from one MobyGames game object.

    Raises:
        InputError: the entry is not a standalone game
        CatalogError: malformed game data
    """
    if not isinstance(info, dict):
        raise CatalogError("Unexpected game data")
    title = info.get("title")
    if not isinstance(title, str) or not title:
        raise CatalogError("Invalid title")

    platforms, year = parse_platforms(info.get("platforms"))

    return NormalizedGame(
        moby_id=moby_id,
        title=title,
        description=parse_description(info.get("description")),
        year=year,
        platforms=platforms,
        **parse_genres(info.get("genres")),
        **parse_images(info),
    )
