"""FastAPI dependency injection for the database handle, sessions, and callers.

Provides get_database, get_async_session, get_current_user, role-based
access control for administrators, and get_current_voter_id, the single
place a voter identity is resolved (from the bearer token, never from a
request body).
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings, get_settings
from ballot_api.core.database import Database
from ballot_api.core.security import VOTER_ROLE, decode_token
from ballot_api.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


def get_database(request: Request) -> Database:
    """Return the Database handle created by the application lifespan."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Database not initialized for this application"
        raise RuntimeError(msg)
    return database


async def get_async_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    async with database.session() as session:
        yield session


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_access_token(token: str, settings: Settings) -> dict:
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as exc:
        raise _credentials_exception() from exc
    if payload.get("type") != "access" or payload.get("sub") is None:
        raise _credentials_exception()
    return payload


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Decode an administrator JWT and return the authenticated user.

    Raises:
        HTTPException: If the token is invalid, belongs to a voter, or the user is not found.
    """
    payload = _decode_access_token(token, settings)
    if payload.get("role") == VOTER_ROLE:
        raise _credentials_exception()

    result = await session.execute(select(User).where(User.username == payload["sub"]))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise _credentials_exception()
    return user


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific administrator roles.

    Args:
        *roles: Allowed role names (e.g., "admin", "viewer").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' does not have access to this resource",
            )
        return current_user

    return role_checker


async def get_current_voter_id(
    token: Annotated[str, Depends(oauth2_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> int:
    """Resolve the calling voter's id from a voter access token.

    Raises:
        HTTPException: 401 if the token is invalid, 403 if it is not a voter token.
    """
    payload = _decode_access_token(token, settings)
    if payload.get("role") != VOTER_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only voters can access the ballot",
        )
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise _credentials_exception() from exc
