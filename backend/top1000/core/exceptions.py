"""Custom exception classes for the application.

Input errors travel to the API boundary verbatim. Everything else is
logged once where it is caught and replaced by an opaque ``LoggedError``.
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class Top1000Exception(Exception):
    """Base exception for all Top1000 errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class InputError(Top1000Exception):
    """Raised on client-correctable input (bad page, unknown game, ...)."""


class NotFoundError(InputError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class RateLimitError(InputError):
    """Raised when a client exceeded the allowed tries for an action."""

    def __init__(self, action: str, max_tries: int, minutes: int):
        self.action = action
        super().__init__(f"Only {max_tries} tries in {minutes} minutes permitted.")


class AuthError(Top1000Exception):
    """Raised when a request lacks valid credentials."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ConsistencyError(Top1000Exception):
    """Raised when the store reports a result that should be impossible."""


class CatalogError(Top1000Exception):
    """Raised when the game catalog returns unusable data."""


class LoggedError(Top1000Exception):
    """Opaque failure. The cause has already been logged."""

    def __init__(self) -> None:
        super().__init__("An unexpected error occurred")


def logged_errors(event: str) -> Callable[[F], F]:
    """Log unexpected exceptions of a service method once and hide them.

    The decorated method must live on an object with a structlog ``logger``
    attribute. ``InputError`` and ``LoggedError`` pass through untouched.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except (InputError, LoggedError):
                raise
            except Exception as e:
                self.logger.error(event, error=str(e), exc_info=True)
                raise LoggedError() from e

        return wrapper  # type: ignore[return-value]

    return decorator
