"""Eligibility gate: may this voter currently submit a ballot?

Advisory only: callers use it to decide whether to present a ballot. The
submission engine repeats these checks inside its transaction, which is
the authoritative guard against double voting.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.lib.ballot import AlreadyVotedError, Eligibility, NotAssignedError, VoterNotFoundError
from ballot_api.models.voter import Voter, VoterStatus


async def check_eligibility(session: AsyncSession, voter_id: int) -> Eligibility:
    """Check that a voter is assigned to an election and has not voted.

    Args:
        session: The database session.
        voter_id: The voter to check.

    Returns:
        Eligibility carrying the voter's assigned election id.

    Raises:
        VoterNotFoundError: If the voter does not exist.
        NotAssignedError: If the voter has no assigned election.
        AlreadyVotedError: If the voter has already voted.
    """
    voter = (await session.execute(select(Voter).where(Voter.id == voter_id))).scalar_one_or_none()
    if voter is None:
        raise VoterNotFoundError
    if voter.election_id is None:
        raise NotAssignedError
    if voter.status == VoterStatus.VOTED:
        raise AlreadyVotedError
    return Eligibility(voter_id=voter.id, election_id=voter.election_id, status=voter.status)
