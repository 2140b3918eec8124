"""FastAPI dependency injection for database sessions and authentication.

These dependencies are used in endpoint function signatures to inject a
database session and the authenticated caller.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.meeting_history.core.database import get_session
from src.meeting_history.core.security import verify_token
from src.meeting_history.models.identity import User


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity of an active user resolved from the caller's access token."""

    user_id: uuid.UUID
    email: str | None = None
    role: str | None = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    async for session in get_session():
        yield session


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthenticatedUser:
    """Extract the current user from the Bearer JWT and load it from the database.

    Only active users are accepted, so deactivating or removing a user
    revokes access immediately rather than at token expiry.

    Raises:
        HTTPException(401): If no valid access token is provided, or the
            token's user is missing or inactive.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(auth_header[7:], token_type="access")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.is_active == True,  # noqa: E712
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return AuthenticatedUser(user_id=user.id, email=user.email, role=user.role)
