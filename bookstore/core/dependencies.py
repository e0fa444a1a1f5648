from fastapi import Request

from bookstore.core.exceptions import UnauthorizedError
from bookstore.models.user import User


async def get_current_user(request: Request) -> User:
    """
    Get current authenticated user from request state.

    UserInjectionMiddleware has already parsed the JWT and loaded the user.
    This dependency simply retrieves it and raises 401 if not present.

    Raises:
        UnauthorizedError: if the request carries no valid token
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    return user


async def get_current_user_optional(request: Request) -> User | None:
    """Get current user if authenticated, otherwise return None."""
    return getattr(request.state, "user", None)
