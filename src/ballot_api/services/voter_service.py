"""Voter service: registration, election assignment, listing, import, and removal.

Voter status is never reset here: a voter who has voted, or who has any
Vote row in an election, cannot be reassigned or removed from it. Writes
that move a voter between elections are guarded on ``status`` in the UPDATE
itself so a ballot committed concurrently is never detached from its voter.
"""

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.security import hash_password
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.schemas.voter import VoterCreateRequest


class DuplicateVoterError(ValueError):
    """Raised when a voter email is already registered."""


class NoVotersToImportError(ValueError):
    """Raised when a bulk import matches no unassigned, unvoted voters."""


class VotersAlreadyVotedError(ValueError):
    """Raised when an operation would detach voters from votes they already cast."""

    def __init__(self, voters: list[Voter]) -> None:
        self.voter_ids = [v.id for v in voters]
        names = ", ".join(v.full_name for v in voters)
        super().__init__(f"Cannot remove voters who have already voted: {names}")


async def create_voter(session: AsyncSession, request: VoterCreateRequest) -> Voter:
    """Register a new voter, optionally assigned to an election.

    Raises:
        DuplicateVoterError: If the email is already registered.
    """
    msg = f"A voter with email '{request.email}' already exists"
    existing = await session.execute(select(Voter).where(Voter.email == request.email))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateVoterError(msg)

    voter = Voter(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        hashed_password=hash_password(request.password),
        status=VoterStatus.REGISTERED,
        election_id=request.election_id,
    )
    session.add(voter)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise DuplicateVoterError(msg) from e
    await session.refresh(voter)
    logger.info(f"Registered voter {voter.id}")
    return voter


async def get_voter(session: AsyncSession, voter_id: int) -> Voter | None:
    """Get a voter by ID."""
    result = await session.execute(select(Voter).where(Voter.id == voter_id))
    return result.scalar_one_or_none()


async def list_election_voters(
    session: AsyncSession,
    election_id: int,
    *,
    status: str | None = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Voter], int]:
    """List the voters assigned to an election, ordered by last name.

    Returns:
        Tuple of (voters, total count).
    """
    query = select(Voter).where(Voter.election_id == election_id)
    count_query = select(func.count(Voter.id)).where(Voter.election_id == election_id)
    if status is not None:
        query = query.where(Voter.status == status)
        count_query = count_query.where(Voter.status == status)

    total = (await session.execute(count_query)).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(
        query.order_by(Voter.last_name, Voter.first_name, Voter.id).offset(offset).limit(page_size)
    )
    return list(result.scalars().all()), total


async def assign_voter(session: AsyncSession, voter: Voter, election_id: int) -> Voter:
    """Assign a voter to an election.

    Raises:
        VotersAlreadyVotedError: If the voter has already voted, including a
            ballot committed after ``voter`` was loaded.
    """
    if voter.status == VoterStatus.VOTED:
        raise VotersAlreadyVotedError([voter])

    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter.id, Voter.status == VoterStatus.REGISTERED)
        .values(election_id=election_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        error = VotersAlreadyVotedError([voter])
        await session.rollback()
        logger.warning(f"Voter {error.voter_ids[0]} voted before reassignment to election {election_id}")
        raise error

    await session.commit()
    await session.refresh(voter)
    return voter


async def import_voters(session: AsyncSession, election_id: int, voter_ids: list[int] | None = None) -> int:
    """Assign unassigned voters to an election in bulk.

    Only voters with no election who have not voted are touched; listed
    voters that are assigned elsewhere or VOTED are skipped.

    Args:
        session: The database session.
        election_id: The election to import voters into.
        voter_ids: Voters to import, or None for every eligible voter.

    Returns:
        Number of voters assigned.

    Raises:
        NoVotersToImportError: If no voter matched.
    """
    stmt = (
        update(Voter)
        .where(Voter.election_id.is_(None), Voter.status == VoterStatus.REGISTERED)
        .values(election_id=election_id)
        .execution_options(synchronize_session=False)
    )
    if voter_ids is not None:
        stmt = stmt.where(Voter.id.in_(voter_ids))

    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        msg = "No unassigned voters found with the specified criteria"
        raise NoVotersToImportError(msg)

    await session.commit()
    logger.info(f"Imported {result.rowcount} voter(s) into election {election_id}")
    return result.rowcount


async def remove_voters_from_election(session: AsyncSession, election_id: int, voter_ids: list[int]) -> int:
    """Unassign voters from an election.

    The whole request is refused if any listed voter has a Vote row in the
    election or is already VOTED. Voters not assigned to this election are
    ignored.

    Args:
        session: The database session.
        election_id: The election to remove voters from.
        voter_ids: Voters to remove.

    Returns:
        Number of voters unassigned.

    Raises:
        VotersAlreadyVotedError: If any listed voter has voted in this election.
    """
    voted_ids = select(Vote.voter_id).where(Vote.election_id == election_id, Vote.voter_id.in_(voter_ids))
    has_voted = Voter.id.in_(voted_ids) | ((Voter.election_id == election_id) & (Voter.status == VoterStatus.VOTED))
    result = await session.execute(select(Voter).where(Voter.id.in_(voter_ids), has_voted).order_by(Voter.id))
    voted = result.scalars().all()
    if voted:
        raise VotersAlreadyVotedError(list(voted))

    result = await session.execute(
        update(Voter)
        .where(Voter.id.in_(voter_ids), Voter.election_id == election_id, Voter.status == VoterStatus.REGISTERED)
        .values(election_id=None)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    logger.info(f"Removed {result.rowcount} voter(s) from election {election_id}")
    return result.rowcount
