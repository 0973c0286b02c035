"""FastAPI dependency injection providers."""

import uuid
from typing import AsyncGenerator, Literal, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.core.exceptions import AuthError
from top1000.db.session import async_session_factory
from top1000.models.user import User
from top1000.services.ranking import FilterOptions
from top1000.services.user_service import UserService, decode_access_token

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate JWT token, return the authenticated user.

    Raises AuthError (401) if token is missing/invalid or user not found.
    """
    if not credentials:
        raise AuthError()

    user_id_str = decode_access_token(credentials.credentials)
    if not user_id_str:
        raise AuthError("Invalid token")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise AuthError("Invalid token")

    service = UserService(db)
    user = await service.get_user_by_id(user_id)

    if not user or not user.is_active:
        raise AuthError("User not found")

    return user


def get_client_ip(request: Request) -> str:
    """Address used for per-client action limits."""
    return request.client.host if request.client else "unknown"


def get_filter_options(
    gender: Optional[Literal["female", "male", "other"]] = Query(None),
    age: Optional[int] = Query(None, ge=1, le=9, description="Age bracket"),
    group: Optional[Literal["gamer", "journalist", "scientist", "critic", "wasted"]] = Query(None),
) -> FilterOptions:
    """Demographic filter shared by the list and statistics endpoints."""
    return FilterOptions(gender=gender, age=age, group=group)
