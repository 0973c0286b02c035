"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from top1000.api.v1 import auth, data, games, health, ranking, users, votes

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(users.router, prefix="/users", tags=["users"])
api_v1_router.include_router(votes.router, prefix="/votes", tags=["votes"])
api_v1_router.include_router(ranking.router, tags=["ranking"])
api_v1_router.include_router(games.router, prefix="/games", tags=["games"])
api_v1_router.include_router(data.router, tags=["data"])
