"""API tests through the FastAPI app.

Requests go through ``httpx.ASGITransport``; the database dependency is
overridden with the in-memory test session and Redis with a dict-backed
cache.
"""

import csv
import io
from fnmatch import fnmatch
from typing import Dict, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jsonschema import validate
from sqlalchemy import select

from conftest import create_game
from top1000.dependencies import get_db
from top1000.main import app
from top1000.models import Vote
from top1000.services.cache_service import GENERATION_KEY, CacheService, get_cache
from top1000.services.ranking_service import RankingService
from top1000.services.user_service import create_access_token
from top1000.services.vote_service import EXPORT_FIELDS


RANKED_LIST_SCHEMA = {
    "type": "object",
    "required": ["status", "data", "meta"],
    "properties": {
        "status": {"const": "success"},
        "data": {
            "type": "object",
            "required": ["data", "pages", "limit"],
            "properties": {
                "pages": {"type": "integer", "minimum": 0},
                "limit": {"type": "integer", "minimum": 5, "maximum": 100},
                "data": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["score", "votes", "comments", "game"],
                        "properties": {
                            "score": {"type": "number"},
                            "votes": {"type": "integer", "minimum": 1},
                            "comments": {"type": "array", "items": {"type": "string"}},
                            "game": {"type": ["object", "null"]},
                        },
                    },
                },
            },
        },
    },
}


class MemoryCache(CacheService):
    """CacheService keeping entries in a dict instead of Redis."""

    def __init__(self):
        super().__init__("redis://unused")
        self.store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        self.store[key] = value
        return True

    async def incr(self, key: str) -> int:
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def delete_pattern(self, pattern: str) -> int:
        keys = [key for key in self.store if fnmatch(key, pattern)]
        for key in keys:
            del self.store[key]
        return len(keys)

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest_asyncio.fixture
async def client(test_db, memory_cache):
    """HTTP client bound to the app with test dependencies."""

    async def override_get_db():
        yield test_db

    async def override_get_cache():
        return memory_cache

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = override_get_cache
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(sample_user):
    return {"Authorization": f"Bearer {create_access_token(sample_user.id)}"}


# ============================================================================
# HEALTH / AUTH
# ============================================================================

class TestHealthAndAuth:
    """Health endpoint and account lifecycle."""

    async def test_health(self, client):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"

    async def test_register_login_me(self, client):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "dave@example.com", "password": "password123"},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user"]["email"] == "dave@example.com"
        assert data["user"]["groups"]["gamer"] is False

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "dave@example.com", "password": "password123"},
        )
        assert response.status_code == 200
        token = response.json()["data"]["token"]["access_token"]

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "dave@example.com"

    async def test_second_registration_from_same_address_limited(self, client):
        first = await client.post(
            "/api/v1/auth/register",
            json={"email": "one@example.com", "password": "password123"},
        )
        second = await client.post(
            "/api/v1/auth/register",
            json={"email": "two@example.com", "password": "password123"},
        )

        assert first.status_code == 201
        assert second.status_code == 429
        assert second.json()["error"]["message"] == "Only 1 tries in 30 minutes permitted."

    async def test_login_wrong_password(self, client, sample_user):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "wrongpass1"},
        )

        assert response.status_code == 401
        assert response.json()["status"] == "error"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-token"}])
    async def test_protected_endpoint_requires_token(self, client, headers):
        response = await client.get("/api/v1/votes", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    async def test_delete_account(self, client, test_db, sample_user, sample_games, auth_headers):
        user_id = sample_user.id
        await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )

        response = await client.delete("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["votes_deleted"] == 1
        result = await test_db.execute(select(Vote).where(Vote.user_id == user_id))
        assert result.scalars().all() == []


# ============================================================================
# VOTES / PROFILE
# ============================================================================

class TestVotesApi:
    """Own list and profile endpoints."""

    async def test_cast_list_and_comment(self, client, sample_games, auth_headers):
        for position, key in ((1, "A"), (2, "B")):
            response = await client.put(
                "/api/v1/votes",
                json={"position": position, "game_id": str(sample_games[key].id)},
                headers=auth_headers,
            )
            assert response.status_code == 200

        response = await client.put(
            "/api/v1/votes/2/comment",
            json={"comment": "Still beautiful"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["comment"] == "Still beautiful"

        response = await client.get("/api/v1/votes", headers=auth_headers)
        votes = response.json()["data"]
        assert [(v["position"], v["title"]) for v in votes] == [(1, "Doom"), (2, "Myst")]
        assert votes[1]["comment"] == "Still beautiful"

    async def test_cast_unknown_game(self, client, sample_user, auth_headers):
        response = await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    async def test_comment_without_vote(self, client, sample_user, auth_headers):
        response = await client.put(
            "/api/v1/votes/3/comment",
            json={"comment": "Nothing here"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    async def test_invalid_position(self, client, sample_games, auth_headers):
        response = await client.put(
            "/api/v1/votes",
            json={"position": 101, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_profile_update_reaches_filtered_list(self, client, sample_games, auth_headers):
        await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )

        response = await client.put(
            "/api/v1/users/me/profile",
            json={"age": 5, "gender": "other", "groups": {"critic": True}},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["groups"]["critic"] is True

        response = await client.get("/api/v1/users/me/profile", headers=auth_headers)
        assert response.json()["data"]["age"] == 5

        response = await client.get("/api/v1/list", params={"gender": "other", "group": "critic"})
        assert [e["game"]["title"] for e in response.json()["data"]["data"]] == ["Doom"]
        response = await client.get("/api/v1/list", params={"gender": "female"})
        assert response.json()["data"]["data"] == []


# ============================================================================
# LIST / STATISTICS
# ============================================================================

class TestRankingApi:
    """Public top list and statistics."""

    async def test_empty_list(self, client):
        response = await client.get("/api/v1/list", params={"page": 1, "limit": 20})

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == {"data": [], "pages": 0, "limit": 20}
        assert body["meta"]["total_pages"] == 0

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"page": 100000}, {"limit": 4}, {"limit": 101}, {"age": 10}, {"gender": "robot"}],
    )
    async def test_invalid_query(self, client, params):
        response = await client.get("/api/v1/list", params=params)

        assert response.status_code == 422

    async def test_list_and_statistics(self, client, sample_games, auth_headers):
        await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )
        await client.put(
            "/api/v1/votes",
            json={"position": 2, "game_id": str(sample_games["B"].id)},
            headers=auth_headers,
        )

        response = await client.get("/api/v1/list")
        entries = response.json()["data"]["data"]
        assert [e["game"]["title"] for e in entries] == ["Doom", "Myst"]
        assert entries[0]["score"] == 10
        assert entries[0]["votes"] == 1
        validate(instance=response.json(), schema=RANKED_LIST_SCHEMA)

        response = await client.get("/api/v1/statistics")
        stats = response.json()["data"]
        assert {"name": "Action", "count": 1} in stats["genres"]
        assert set(stats) == {
            "genres", "gameplay", "perspectives", "settings", "topics", "platforms", "decades",
        }

    async def test_votes_invalidate_cached_list(self, client, memory_cache, sample_games, auth_headers):
        await client.get("/api/v1/list")
        await client.get("/api/v1/statistics")
        assert any(key.startswith("list:") for key in memory_cache.store)
        assert any(key.startswith("stats:") for key in memory_cache.store)

        await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )
        assert not any(key.startswith(("list:", "stats:")) for key in memory_cache.store)
        assert memory_cache.store[GENERATION_KEY] == "1"

        response = await client.get("/api/v1/list")
        assert len(response.json()["data"]["data"]) == 1

    async def test_cached_list_served(self, client, memory_cache):
        await client.get("/api/v1/list", params={"limit": 5})
        key = "list:g0:p1:l5:all"
        memory_cache.store[key] = memory_cache.store[key].replace('"pages":0', '"pages":7')

        response = await client.get("/api/v1/list", params={"limit": 5})

        assert response.json()["data"]["pages"] == 7

    async def test_list_computed_before_vote_not_served_after(
        self, client, memory_cache, sample_games, auth_headers
    ):
        compute = RankingService.get_ranked_list

        async def list_then_vote(service, *args, **kwargs):
            result = await compute(service, *args, **kwargs)
            await client.put(
                "/api/v1/votes",
                json={"position": 1, "game_id": str(sample_games["A"].id)},
                headers=auth_headers,
            )
            return result

        with patch.object(RankingService, "get_ranked_list", list_then_vote):
            response = await client.get("/api/v1/list")
        assert response.json()["data"]["data"] == []

        response = await client.get("/api/v1/list")

        assert len(response.json()["data"]["data"]) == 1
        assert response.json()["data"]["data"][0]["game"]["title"] == "Doom"


# ============================================================================
# GAMES / DATA
# ============================================================================

class TestGamesAndData:
    """Catalog search, import validation and CSV export."""

    async def test_search(self, client, test_db, sample_games, auth_headers):
        await create_game(test_db, "Doom II: Hell on Earth", 3)

        response = await client.get("/api/v1/games/search", params={"search": "doo"}, headers=auth_headers)

        assert response.status_code == 200
        results = response.json()["data"]["results"]
        assert [r["title"] for r in results] == ["Doom", "Doom II: Hell on Earth"]
        assert results[0]["platforms"][0]["name"] == "DOS"
        assert response.json()["data"]["more"] is False

    async def test_add_existing_game(self, client, sample_games, auth_headers):
        response = await client.post("/api/v1/games", json={"moby_ident": "1"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Game already in database"

    async def test_add_game_bad_ident(self, client, sample_user, auth_headers):
        response = await client.post(
            "/api/v1/games", json={"moby_ident": "https://example.com/x"}, headers=auth_headers
        )

        assert response.status_code == 400

    async def test_export_csv(self, client, sample_games, auth_headers):
        await client.put(
            "/api/v1/votes",
            json={"position": 1, "game_id": str(sample_games["A"].id)},
            headers=auth_headers,
        )

        response = await client.get("/api/v1/data", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert tuple(rows[0].keys()) == EXPORT_FIELDS
        assert rows[0]["game"] == "Doom"
        assert rows[0]["genres"] == "Action"
