"""MobyGames API client.

Docs: https://www.mobygames.com/info/api/
Limits: 1 request per second, 360 requests per hour per API key.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from top1000.catalog.base import NormalizedGame, parse_game
from top1000.catalog.utils import AdmissionGate, http_retry
from top1000.config import settings
from top1000.core.exceptions import CatalogError, InputError

logger = structlog.get_logger(__name__)

# One gate per process: the API limits are per key, not per client object
_default_gate = AdmissionGate(min_interval=1.0, hourly_cap=360)

USER_AGENT = "top1000/0.1.0"


class MobygamesClient:
    """Fetches game metadata from the MobyGames API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        gate: Optional[AdmissionGate] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            api_key: MobyGames API key, defaults to ``MOBY_API_KEY``
            base_url: API root, defaults to ``MOBY_API_URL``
            gate: Admission gate shared by all requests
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.api_key = api_key if api_key is not None else settings.MOBY_API_KEY
        self.base_url = (base_url or settings.MOBY_API_URL).rstrip("/")
        self.gate = gate or _default_gate
        self._transport = transport
        self._timeout = 30.0
        self.logger = logger.bind(client="mobygames")

    async def fetch_game(self, moby_id: int) -> NormalizedGame:
        """Fetch and normalize a single game.

        Raises:
            InputError: no such game, or not a standalone game
            CatalogError: unexpected response
            httpx.HTTPError: request failed after retries
        """
        data = await self._get_json("/games", {"format": "normal", "id": moby_id})

        games = data.get("games")
        if not isinstance(games, list) or len(games) != 1:
            raise InputError("Game not found")

        game = parse_game(games[0], moby_id)
        self.logger.info("mobygames_game_fetched", moby_id=moby_id, title=game.title)
        return game

    @http_retry
    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET an API path through the admission gate and return the JSON object."""
        async with self.gate:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                response = await client.get(
                    f"{self.base_url}{path}",
                    params={**params, "api_key": self.api_key},
                )

        if response.status_code == 404:
            raise InputError("Game not found")
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError("Unexpected return value") from e
        if not isinstance(data, dict):
            raise CatalogError("Unexpected return value")
        return data
