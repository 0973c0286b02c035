"""User service: JWT tokens, password hashing, accounts and voter profiles."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from top1000.config import settings
from top1000.core.exceptions import ConsistencyError, InputError, logged_errors
from top1000.models.user import GENDERS, VOTER_GROUPS, User
from top1000.models.vote import Vote
from top1000.services.client_action_service import ClientActionGuard

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: uuid.UUID) -> str:
    """Create a JWT access token for the given user ID."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Decode a JWT token and return the user ID string, or None if invalid."""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload.get("sub")
    except JWTError:
        return None


def profile_values(age: int, gender: Optional[str], groups: Mapping[str, bool]) -> Dict[str, Any]:
    """Column values of a demographic profile, shared by users and votes."""
    if not 0 <= age <= 9:
        raise InputError("Invalid age")
    if gender is not None and gender not in GENDERS:
        raise InputError("Invalid gender")
    unknown = set(groups) - set(VOTER_GROUPS)
    if unknown:
        raise InputError(f"Invalid group: {sorted(unknown)[0]}")
    values: Dict[str, Any] = {"age": age, "gender": gender}
    for group in VOTER_GROUPS:
        values[group] = bool(groups.get(group, False))
    return values


class UserService:
    """Handles registration, login, lookup, profile updates and deletion."""

    def __init__(self, db: AsyncSession, guard: Optional[ClientActionGuard] = None):
        self.db = db
        self.guard = guard or ClientActionGuard(db)
        self.logger = logger.bind(service="user_service")

    @logged_errors("user_register_failed")
    async def register(self, ip: str, email: str, password: str) -> User:
        """Register a new user. Raises InputError if the email is taken."""
        await self.guard.check(ip, "register")

        result = await self.db.execute(select(User.id).where(User.email == email))
        if result.scalar_one_or_none():
            raise InputError("Email already exists")

        user = User(
            email=email,
            hashed_password=hash_password(password),
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise InputError("Email already exists")

        # Load server-side timestamps
        await self.db.refresh(user)
        self.logger.info("user_registered", user_id=str(user.id))
        return user

    @logged_errors("user_authenticate_failed")
    async def authenticate(self, ip: str, email: str, password: str) -> Optional[User]:
        """Verify credentials and return user, or None if invalid."""
        await self.guard.check(ip, "login")

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.hashed_password):
            return None

        if not user.is_active:
            return None

        user.last_login_at = datetime.now(timezone.utc)
        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Fetch user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @logged_errors("profile_update_failed")
    async def update_profile(
        self,
        user_id: uuid.UUID,
        age: int,
        gender: Optional[str],
        groups: Mapping[str, bool],
    ) -> Dict[str, Any]:
        """Store a new demographic profile on the user and on all their votes.

        Both writes happen in one transaction. If either fails the
        transaction is rolled back, so votes and user never disagree.

        Returns:
            The stored profile values
        """
        values = profile_values(age, gender, groups)

        try:
            votes_updated = await self._propagate_to_votes(user_id, values)
            await self._store_on_user(user_id, values)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.logger.info(
            "profile_updated",
            user_id=str(user_id),
            votes_updated=votes_updated,
        )
        return values

    async def _propagate_to_votes(self, user_id: uuid.UUID, values: Dict[str, Any]) -> int:
        result = await self.db.execute(
            update(Vote).where(Vote.user_id == user_id).values(**values)
        )
        return result.rowcount

    async def _store_on_user(self, user_id: uuid.UUID, values: Dict[str, Any]) -> None:
        result = await self.db.execute(
            update(User).where(User.id == user_id).values(**values)
        )
        if result.rowcount != 1:
            raise ConsistencyError(f"Profile update matched {result.rowcount} users")

    @logged_errors("user_delete_failed")
    async def delete_user(self, user_id: uuid.UUID) -> int:
        """Delete a user together with all of their votes.

        Returns:
            Number of votes removed
        """
        try:
            votes = await self.db.execute(delete(Vote).where(Vote.user_id == user_id))
            users = await self.db.execute(delete(User).where(User.id == user_id))
            if users.rowcount != 1:
                raise ConsistencyError(f"Delete matched {users.rowcount} users")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        self.logger.info("user_deleted", user_id=str(user_id), votes_deleted=votes.rowcount)
        return votes.rowcount
