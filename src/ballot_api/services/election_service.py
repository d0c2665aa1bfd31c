"""Election service: administrative authoring of elections and their ballots.

Creates, updates, and deletes elections, and edits their positions and
candidates. Ballot contents can only change while an election is INACTIVE
so that votes already cast always refer to the ballot they were cast
against. Anything a Vote row refers to is never deleted.
"""

from loguru import logger
from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import as_utc
from ballot_api.models.election import Candidate, Election, ElectionStatus, Position
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter
from ballot_api.schemas.election import (
    CandidateCreateRequest,
    CandidateUpdateRequest,
    ElectionCreateRequest,
    ElectionUpdateRequest,
    PositionCreateRequest,
    PositionUpdateRequest,
)


class DuplicatePositionError(ValueError):
    """Raised when a position name already exists in the election."""


class BallotLockedError(ValueError):
    """Raised when editing the ballot of an election that is not INACTIVE."""


class InvalidElectionWindowError(ValueError):
    """Raised when an election's end date is not after its start date."""


class ElectionHasVotesError(ValueError):
    """Raised when deleting an election, position, or candidate that votes refer to."""


class PositionHasCandidatesError(ValueError):
    """Raised when deleting a position that still has candidates."""


def _check_window(election: Election) -> None:
    if as_utc(election.end_date) <= as_utc(election.start_date):
        msg = "end_date must be after start_date"
        raise InvalidElectionWindowError(msg)


def _ensure_ballot_editable(election: Election) -> None:
    if election.status != ElectionStatus.INACTIVE:
        msg = f"Ballot cannot be changed while the election is {election.status}"
        raise BallotLockedError(msg)


async def _votes_exist(session: AsyncSession, *criteria) -> bool:
    return (await session.execute(select(exists().where(*criteria)))).scalar()


async def create_election(session: AsyncSession, request: ElectionCreateRequest) -> Election:
    """Create a new election (INACTIVE unless another status is requested).

    Raises:
        InvalidElectionWindowError: If end_date is not after start_date.
    """
    election = Election(
        name=request.name,
        description=request.description,
        start_date=request.start_date,
        end_date=request.end_date,
        status=request.status,
    )
    _check_window(election)
    session.add(election)
    await session.commit()
    await session.refresh(election)
    return election


async def get_election(session: AsyncSession, election_id: int) -> Election | None:
    """Get an election by ID."""
    result = await session.execute(select(Election).where(Election.id == election_id))
    return result.scalar_one_or_none()


async def list_elections(
    session: AsyncSession,
    *,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Election], int]:
    """List elections newest first, optionally filtered by status.

    Returns:
        Tuple of (elections, total count).
    """
    query = select(Election)
    count_query = select(func.count(Election.id))
    if status is not None:
        query = query.where(Election.status == status)
        count_query = count_query.where(Election.status == status)

    total = (await session.execute(count_query)).scalar_one()
    offset = (page - 1) * page_size
    result = await session.execute(query.order_by(Election.id.desc()).offset(offset).limit(page_size))
    return list(result.scalars().all()), total


async def update_election(
    session: AsyncSession,
    election_id: int,
    request: ElectionUpdateRequest,
) -> Election | None:
    """Apply a partial update to an election.

    Returns:
        The updated Election, or None if not found.

    Raises:
        InvalidElectionWindowError: If the resulting window is empty.
    """
    election = await get_election(session, election_id)
    if election is None:
        return None

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(election, field, value)
    _check_window(election)

    await session.commit()
    await session.refresh(election)
    return election


async def add_position(session: AsyncSession, election: Election, request: PositionCreateRequest) -> Position:
    """Add a contested position to an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
        DuplicatePositionError: If the election already has a position with this name.
    """
    _ensure_ballot_editable(election)
    existing = await session.execute(
        select(Position).where(Position.election_id == election.id, Position.name == request.name)
    )
    if existing.scalar_one_or_none() is not None:
        msg = f"Position '{request.name}' already exists in this election"
        raise DuplicatePositionError(msg)

    position = Position(election_id=election.id, name=request.name)
    session.add(position)
    await session.commit()
    await session.refresh(position)
    return position


async def get_position(session: AsyncSession, election_id: int, position_id: int) -> Position | None:
    """Get a position by ID, scoped to its election."""
    result = await session.execute(
        select(Position).where(Position.id == position_id, Position.election_id == election_id)
    )
    return result.scalar_one_or_none()


async def add_candidate(
    session: AsyncSession,
    election: Election,
    position: Position,
    request: CandidateCreateRequest,
) -> Candidate:
    """Add a candidate to a position of an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
    """
    _ensure_ballot_editable(election)
    candidate = Candidate(
        position_id=position.id,
        name=request.name,
        party=request.party,
        avatar_url=request.avatar_url,
    )
    session.add(candidate)
    await session.commit()
    await session.refresh(candidate)
    return candidate


async def delete_election(session: AsyncSession, election: Election) -> int:
    """Delete an election with its positions and candidates.

    Assigned voters are unassigned rather than deleted.

    Returns:
        Number of voters unassigned.

    Raises:
        ElectionHasVotesError: If any vote has been cast in the election.
    """
    msg = f"Cannot delete election {election.id}: votes have been cast"
    if await _votes_exist(session, Vote.election_id == election.id):
        raise ElectionHasVotesError(msg)

    election_id = election.id
    result = await session.execute(
        update(Voter)
        .where(Voter.election_id == election_id)
        .values(election_id=None)
        .execution_options(synchronize_session=False)
    )
    await session.delete(election)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ElectionHasVotesError(msg) from e
    logger.info(f"Deleted election {election_id}, unassigned {result.rowcount} voter(s)")
    return result.rowcount


async def update_position(
    session: AsyncSession,
    election: Election,
    position: Position,
    request: PositionUpdateRequest,
) -> Position:
    """Rename a position of an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
        DuplicatePositionError: If another position already has this name.
    """
    _ensure_ballot_editable(election)
    existing = await session.execute(
        select(Position.id).where(
            Position.election_id == election.id,
            Position.name == request.name,
            Position.id != position.id,
        )
    )
    if existing.first() is not None:
        msg = f"Position '{request.name}' already exists in this election"
        raise DuplicatePositionError(msg)

    position.name = request.name
    await session.commit()
    await session.refresh(position)
    return position


async def delete_position(session: AsyncSession, election: Election, position: Position) -> None:
    """Delete an empty position from an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
        PositionHasCandidatesError: If the position still has candidates.
    """
    _ensure_ballot_editable(election)
    count = (
        await session.execute(select(func.count(Candidate.id)).where(Candidate.position_id == position.id))
    ).scalar_one()
    if count:
        msg = "Cannot delete a position with candidates. Remove candidates first."
        raise PositionHasCandidatesError(msg)

    await session.delete(position)
    await session.commit()


async def get_candidate(session: AsyncSession, position_id: int, candidate_id: int) -> Candidate | None:
    """Get a candidate by ID, scoped to its position."""
    result = await session.execute(
        select(Candidate).where(Candidate.id == candidate_id, Candidate.position_id == position_id)
    )
    return result.scalar_one_or_none()


async def update_candidate(
    session: AsyncSession,
    election: Election,
    candidate: Candidate,
    request: CandidateUpdateRequest,
) -> Candidate:
    """Apply a partial update to a candidate of an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
    """
    _ensure_ballot_editable(election)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(candidate, field, value)
    await session.commit()
    await session.refresh(candidate)
    return candidate


async def delete_candidate(session: AsyncSession, election: Election, candidate: Candidate) -> None:
    """Delete a candidate from an INACTIVE election.

    Raises:
        BallotLockedError: If the election is not INACTIVE.
        ElectionHasVotesError: If votes were cast for the candidate.
    """
    _ensure_ballot_editable(election)
    if await _votes_exist(session, Vote.candidate_id == candidate.id):
        msg = f"Cannot delete candidate {candidate.id}: votes have been cast for them"
        raise ElectionHasVotesError(msg)

    await session.delete(candidate)
    await session.commit()
