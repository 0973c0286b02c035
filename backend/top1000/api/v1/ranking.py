"""Top list and statistics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.config import settings
from top1000.dependencies import get_db, get_filter_options
from top1000.schemas.common import ApiResponse, PaginationMeta
from top1000.schemas.ranking import RankedList, VoteStatistics
from top1000.services.cache_service import (
    CacheService,
    cache_key_for_list,
    cache_key_for_statistics,
    get_cache,
)
from top1000.services.ranking import MAX_LIMIT, MAX_PAGE, MIN_LIMIT, FilterOptions
from top1000.services.ranking_service import RankingService
from top1000.services.statistics_service import StatisticsService

router = APIRouter()


@router.get("/list", response_model=ApiResponse)
async def ranked_list(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: Optional[int] = Query(None, ge=MIN_LIMIT, le=MAX_LIMIT),
    filters: FilterOptions = Depends(get_filter_options),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Get one page of the top list, optionally for a demographic subset."""
    limit = limit or settings.GAMES_PER_PAGE
    key = cache_key_for_list(page, limit, filters, await cache.generation())

    result = await cache.get_model(key, RankedList)
    if result is None:
        service = RankingService(db)
        result = await service.get_ranked_list(page, limit, filters)
        await cache.set_model(key, result)

    return ApiResponse(
        status="success",
        data=result.model_dump(mode="json"),
        meta=PaginationMeta(page=page, limit=result.limit, total_pages=result.pages),
    )


@router.get("/statistics", response_model=ApiResponse)
async def statistics(
    filters: FilterOptions = Depends(get_filter_options),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Get tag counts per category over the voted games."""
    key = cache_key_for_statistics(filters, await cache.generation())

    result = await cache.get_model(key, VoteStatistics)
    if result is None:
        service = StatisticsService(db)
        result = await service.get_statistics(filters)
        await cache.set_model(key, result)

    return ApiResponse(status="success", data=result.model_dump(mode="json"))
