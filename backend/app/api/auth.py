"""Auth dependency resolving the acting user.

Session handling lives in front of this service; requests arrive with
``Authorization: Bearer <user_id>`` and the user must exist.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import User
from backend.app.errors import UnauthorizedError


def parse_bearer_token(authorization: str | None) -> uuid.UUID:
    """Extract the user ID from an authorization header.

    Args:
        authorization: Authorization header (e.g., "Bearer <user_id>")

    Returns:
        User ID

    Raises:
        UnauthorizedError: Header missing or malformed
    """
    if not authorization:
        raise UnauthorizedError("Unauthorized - Please log in")

    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid authorization header format")

    token = authorization[7:].strip()  # Strip "Bearer "

    try:
        return uuid.UUID(token)
    except ValueError as e:
        raise UnauthorizedError("Invalid bearer token") from e


async def get_current_context(
    session: Annotated[AsyncSession, Depends(get_session)],
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Resolve the request context for an authenticated user.

    Raises:
        UnauthorizedError: No valid token, or the user does not exist
    """
    user_id = parse_bearer_token(authorization)

    result = await session.execute(select(User.user_id).where(User.user_id == user_id))
    if result.scalar_one_or_none() is None:
        raise UnauthorizedError("Unknown user")

    return RequestContext(user_id=user_id)
