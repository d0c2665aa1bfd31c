"""Shared test fixtures for async database, sessions, seeded ballots, and auth tokens."""

from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ballot_api.core.config import Settings
from ballot_api.core.security import create_access_token, create_voter_token, hash_password
from ballot_api.models import Candidate, Election, Position, User, Voter
from ballot_api.models.base import Base

VOTER_PASSWORD = "correct-horse-battery"

DEFAULT_POSITIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("President", ("Ada Lovelace", "Grace Hopper")),
    ("Treasurer", ("Linus Torvalds", "Guido van Rossum")),
)


@dataclass
class SeededBallot:
    """Ids of a seeded election: position ids in creation order, candidates per position."""

    election_id: int
    position_ids: list[int] = field(default_factory=list)
    candidates: dict[int, list[int]] = field(default_factory=dict)


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        jwt_refresh_token_expire_days=7,
        voter_token_expire_minutes=60,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory test engine."""
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed_ballot() -> Callable[..., Awaitable[SeededBallot]]:
    """Factory that writes an election with positions and candidates.

    Defaults to an ACTIVE election whose window opened an hour ago and
    closes in a day.
    """

    async def _seed(
        session: AsyncSession,
        *,
        name: str = "Student Council 2026",
        status: str = "ACTIVE",
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        positions: Sequence[tuple[str, Sequence[str]]] = DEFAULT_POSITIONS,
    ) -> SeededBallot:
        now = datetime.now(UTC)
        election = Election(
            name=name,
            start_date=start_date or now - timedelta(hours=1),
            end_date=end_date or now + timedelta(days=1),
            status=status,
        )
        session.add(election)
        await session.flush()

        seeded = SeededBallot(election_id=election.id)
        for position_name, candidate_names in positions:
            position = Position(election_id=election.id, name=position_name)
            session.add(position)
            await session.flush()
            seeded.position_ids.append(position.id)
            seeded.candidates[position.id] = []
            for candidate_name in candidate_names:
                candidate = Candidate(position_id=position.id, name=candidate_name)
                session.add(candidate)
                await session.flush()
                seeded.candidates[position.id].append(candidate.id)

        await session.commit()
        return seeded

    return _seed


@pytest.fixture
def make_voter() -> Callable[..., Awaitable[int]]:
    """Factory that writes a voter and returns its id."""
    counter = {"n": 0}

    async def _make(
        session: AsyncSession,
        *,
        election_id: int | None = None,
        status: str = "REGISTERED",
        email: str | None = None,
    ) -> int:
        counter["n"] += 1
        voter = Voter(
            first_name="Test",
            last_name=f"Voter{counter['n']}",
            email=email or f"voter{counter['n']}@example.com",
            hashed_password=hash_password(VOTER_PASSWORD),
            status=status,
            election_id=election_id,
        )
        session.add(voter)
        await session.commit()
        return voter.id

    return _make


@pytest.fixture
async def sample_user(async_session: AsyncSession) -> User:
    """Create a sample admin user in the test database."""
    user = User(
        username="testadmin",
        email="admin@test.com",
        hashed_password=hash_password("testpassword123"),
        role="admin",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin user."""
    return create_access_token(
        subject="testadmin",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def viewer_token(settings: Settings) -> str:
    """Generate a JWT access token for a viewer user."""
    return create_access_token(
        subject="testviewer",
        role="viewer",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def voter_token(settings: Settings) -> str:
    """Generate a voter access token for voter id 1."""
    return create_voter_token(1, secret_key=settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
