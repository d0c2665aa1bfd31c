"""Atomic ballot submission engine.

Records a voter's full ballot and flips the voter to VOTED as one
transaction. Each attempt runs on its own session:

1. lock the voter row (``SELECT ... FOR UPDATE``) and re-check eligibility,
2. re-check the election's status and voting window,
3. load the ballot definition and validate the selections against it,
4. insert one Vote per position, pinned to the voter's own election,
5. conditionally update ``status`` REGISTERED -> VOTED (exactly one row).

Any exception rolls the whole transaction back, so a partial vote set is
never visible. Storage failures are reported as ``TransientStoreFailure``
and retried with exponential backoff; business rejections are not.
"""

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ballot_api.lib.ballot import (
    AlreadyVotedError,
    BallotRejection,
    NotAssignedError,
    SubmissionReceipt,
    TransientStoreFailure,
    VoterNotFoundError,
    ensure_election_open,
    validate_selections,
)
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.services.ballot_service import get_ballot

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 0.05


async def submit_ballot(
    session_factory: async_sessionmaker[AsyncSession],
    voter_id: int,
    selections: Mapping[int, int],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    now: datetime | None = None,
) -> SubmissionReceipt:
    """Submit a full ballot for a voter, exactly once.

    Args:
        session_factory: Factory for fresh sessions; one session per attempt.
        voter_id: The authenticated voter. Never taken from a request body.
        selections: Mapping of position id to candidate id.
        max_attempts: Attempts made when the store reports a transient failure.
        retry_base_delay: Base delay in seconds for exponential backoff.
        now: Submission time; defaults to the current UTC time per attempt.

    Returns:
        SubmissionReceipt for the committed ballot.

    Raises:
        VoterNotFoundError: If the voter does not exist.
        NotAssignedError: If the voter has no assigned election.
        AlreadyVotedError: If the voter has already voted (including losing a concurrent race).
        ElectionClosedError: If the election is not ACTIVE or outside its voting window.
        InvalidSelectionError: If the selections are not a full, legal ballot.
        TransientStoreFailure: If every attempt failed in the storage layer.
    """
    log = logger.bind(voter_id=voter_id)
    for attempt in range(1, max_attempts + 1):
        submitted_at = now or datetime.now(UTC)
        try:
            receipt = await _attempt(session_factory, voter_id, selections, submitted_at)
        except TransientStoreFailure:
            if attempt < max_attempts:
                delay = retry_base_delay * (2 ** (attempt - 1))
                log.warning(f"Ballot submission attempt {attempt}/{max_attempts} failed transiently; retrying in {delay}s")
                await asyncio.sleep(delay)
                continue
            log.error(f"Ballot submission failed after {max_attempts} attempts")
            raise
        except BallotRejection as e:
            log.info(f"Ballot rejected: {e.code}")
            raise
        log.info(f"Ballot recorded for election {receipt.election_id} ({receipt.vote_count} votes)")
        return receipt

    # Only reached when max_attempts < 1
    msg = "max_attempts must be at least 1"
    raise ValueError(msg)


async def _attempt(
    session_factory: async_sessionmaker[AsyncSession],
    voter_id: int,
    selections: Mapping[int, int],
    submitted_at: datetime,
) -> SubmissionReceipt:
    """Run one transactional attempt, translating storage errors to TransientStoreFailure."""
    try:
        async with session_factory() as session:
            return await _submit_once(session, voter_id, selections, submitted_at)
    except (DBAPIError, PoolTimeoutError) as e:
        logger.opt(exception=e).bind(voter_id=voter_id).warning("Storage error during ballot submission")
        raise TransientStoreFailure from e


async def _submit_once(
    session: AsyncSession,
    voter_id: int,
    selections: Mapping[int, int],
    submitted_at: datetime,
) -> SubmissionReceipt:
    """Read, validate, and write one ballot inside a single transaction."""
    async with session.begin():
        voter = (
            await session.execute(select(Voter).where(Voter.id == voter_id).with_for_update())
        ).scalar_one_or_none()
        if voter is None:
            raise VoterNotFoundError
        if voter.election_id is None:
            raise NotAssignedError
        if voter.status != VoterStatus.REGISTERED:
            raise AlreadyVotedError

        election_id = voter.election_id
        ballot = await get_ballot(session, election_id)
        ensure_election_open(ballot.status, ballot.start_date, ballot.end_date, submitted_at)
        validate_selections(ballot, selections)

        await _record_votes(session, voter_id, election_id, selections)
        await _mark_voted(session, voter_id, submitted_at)

    return SubmissionReceipt(
        voter_id=voter_id,
        election_id=election_id,
        vote_count=len(selections),
        submitted_at=submitted_at,
        selections=dict(selections),
    )


async def _record_votes(
    session: AsyncSession,
    voter_id: int,
    election_id: int,
    selections: Mapping[int, int],
) -> None:
    """Insert one Vote per selection, carrying the voter's own election id."""
    session.add_all(
        Vote(
            voter_id=voter_id,
            election_id=election_id,
            position_id=position_id,
            candidate_id=candidate_id,
        )
        for position_id, candidate_id in selections.items()
    )
    await session.flush()


async def _mark_voted(session: AsyncSession, voter_id: int, submitted_at: datetime) -> None:
    """Flip REGISTERED -> VOTED; fail if another transaction got there first."""
    result = await session.execute(
        update(Voter)
        .where(Voter.id == voter_id, Voter.status == VoterStatus.REGISTERED)
        .values(status=VoterStatus.VOTED, voted_at=submitted_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AlreadyVotedError
