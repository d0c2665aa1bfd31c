"""Authentication service for administrators and voters.

Handles admin authentication, creation, token generation and refresh, and
voter login which yields the voter access token consumed by the ballot
endpoints.
"""

from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings
from ballot_api.core.security import (
    create_access_token,
    create_refresh_token,
    create_voter_token,
    decode_token,
    hash_password,
    verify_password,
)
from ballot_api.lib.ballot import ensure_election_open
from ballot_api.models.election import Election
from ballot_api.models.user import User
from ballot_api.models.voter import Voter
from ballot_api.schemas.auth import TokenResponse, UserCreateRequest, VoterTokenResponse
from ballot_api.services.eligibility_service import check_eligibility


class DuplicateUserError(ValueError):
    """Raised when a username or email is already taken."""


async def authenticate_user(session: AsyncSession, username: str, password: str) -> User | None:
    """Authenticate an administrator by username and password.

    Returns:
        The User if authentication succeeds, None otherwise.
    """
    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None
    user.last_login_at = datetime.now(UTC)
    await session.commit()
    return user


async def create_user(session: AsyncSession, request: UserCreateRequest) -> User:
    """Create a new administrator account.

    Raises:
        DuplicateUserError: If username or email already exists.
    """
    existing = await session.execute(
        select(User).where((User.username == request.username) | (User.email == request.email))
    )
    if existing.scalar_one_or_none() is not None:
        msg = "Username or email already exists"
        raise DuplicateUserError(msg)

    user = User(
        username=request.username,
        email=request.email,
        hashed_password=hash_password(request.password),
        role=request.role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def list_users(session: AsyncSession, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
    """List administrator accounts with pagination.

    Returns:
        Tuple of (users list, total count).
    """
    total = (await session.execute(select(func.count(User.id)))).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(select(User).order_by(User.id).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


def generate_tokens(user: User, settings: Settings) -> TokenResponse:
    """Generate access and refresh tokens for an administrator."""
    access_token = create_access_token(
        subject=user.username,
        role=user.role,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_access_token_expire_minutes,
    )
    refresh_token = create_refresh_token(
        subject=user.username,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_days=settings.jwt_refresh_token_expire_days,
    )
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


async def refresh_access_token(
    session: AsyncSession,
    refresh_token_str: str,
    settings: Settings,
) -> TokenResponse:
    """Refresh an administrator access token using a refresh token.

    Raises:
        ValueError: If the refresh token is invalid or user not found.
    """
    try:
        payload = decode_token(refresh_token_str, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as e:
        msg = "Invalid refresh token"
        raise ValueError(msg) from e

    if payload.get("type") != "refresh":
        msg = "Token is not a refresh token"
        raise ValueError(msg)

    username = payload.get("sub")
    if username is None:
        msg = "Invalid token payload"
        raise ValueError(msg)

    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        msg = "User not found or inactive"
        raise ValueError(msg)

    return generate_tokens(user, settings)


async def authenticate_voter(
    session: AsyncSession,
    email: str,
    password: str,
    settings: Settings,
    *,
    now: datetime | None = None,
) -> VoterTokenResponse | None:
    """Log a voter in and issue a voter access token.

    Credentials are checked first; a voter with valid credentials is then
    refused a token when they cannot vote (not assigned, already voted, or
    the election is not open).

    Args:
        session: The database session.
        email: Voter email address.
        password: Plaintext password.
        settings: Application settings.
        now: Login time; defaults to the current UTC time.

    Returns:
        Voter token response, or None when the credentials are wrong.

    Raises:
        NotAssignedError: If the voter has no assigned election.
        AlreadyVotedError: If the voter has already voted.
        ElectionClosedError: If the election is not currently open.
    """
    voter = (await session.execute(select(Voter).where(Voter.email == email))).scalar_one_or_none()
    if voter is None or not verify_password(password, voter.hashed_password):
        logger.info("Voter login failed: invalid credentials")
        return None

    eligibility = await check_eligibility(session, voter.id)
    election = (
        await session.execute(select(Election).where(Election.id == eligibility.election_id))
    ).scalar_one()
    ensure_election_open(election.status, election.start_date, election.end_date, now or datetime.now(UTC))

    token = create_voter_token(
        voter.id,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.voter_token_expire_minutes,
    )
    logger.bind(voter_id=voter.id).info("Voter logged in")
    return VoterTokenResponse(
        access_token=token,
        expires_in=settings.voter_token_expire_minutes * 60,
        voter_id=voter.id,
        election_id=eligibility.election_id,
    )
