"""Ballot definition provider.

Reads an election's contested positions and their candidates. Read-only;
takes the caller's session so the submission engine can load the
definition inside its own transaction.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import (
    BallotDefinition,
    CandidateDefinition,
    ElectionNotFoundError,
    PositionDefinition,
)
from ballot_api.models.election import Candidate, Election, Position


async def get_ballot(session: AsyncSession, election_id: int) -> BallotDefinition:
    """Load the ballot definition for an election.

    Positions are ordered by ascending id (creation order); candidates
    within each position likewise.

    Args:
        session: The database session.
        election_id: The election to load.

    Returns:
        The election's BallotDefinition; ``positions`` is empty when the
        election has none.

    Raises:
        ElectionNotFoundError: If the election does not exist.
    """
    election = (await session.execute(select(Election).where(Election.id == election_id))).scalar_one_or_none()
    if election is None:
        raise ElectionNotFoundError

    positions = (
        (await session.execute(select(Position).where(Position.election_id == election_id).order_by(Position.id)))
        .scalars()
        .all()
    )
    candidates = (
        (
            await session.execute(
                select(Candidate)
                .join(Position, Candidate.position_id == Position.id)
                .where(Position.election_id == election_id)
                .order_by(Candidate.position_id, Candidate.id)
            )
        )
        .scalars()
        .all()
    )

    by_position: dict[int, list[CandidateDefinition]] = {p.id: [] for p in positions}
    for candidate in candidates:
        by_position[candidate.position_id].append(
            CandidateDefinition(
                id=candidate.id,
                name=candidate.name,
                party=candidate.party,
                avatar_url=candidate.avatar_url,
            )
        )

    return BallotDefinition(
        election_id=election.id,
        election_name=election.name,
        status=election.status,
        start_date=election.start_date,
        end_date=election.end_date,
        positions=tuple(
            PositionDefinition(id=p.id, name=p.name, candidates=tuple(by_position[p.id])) for p in positions
        ),
    )
