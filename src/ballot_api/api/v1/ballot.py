"""Voter ballot API endpoints.

GET /ballot: the calling voter's ballot
GET /ballot/eligibility: may the calling voter submit?
POST /ballot/submit: record the calling voter's full ballot atomically

The voter id always comes from the voter access token. Ballot rejections
(already voted, invalid selection, ...) are turned into error responses by
the handler registered in ``ballot_api.main``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings, get_settings
from ballot_api.core.database import Database
from ballot_api.core.dependencies import get_async_session, get_current_voter_id, get_database
from ballot_api.schemas.ballot import (
    BallotResponse,
    BallotSubmitRequest,
    BallotSubmitResponse,
    EligibilityResponse,
)
from ballot_api.schemas.common import ErrorResponse
from ballot_api.services import ballot_service, eligibility_service, submission_service

ballot_router = APIRouter(prefix="/ballot", tags=["ballot"])

_REJECTION_RESPONSES: dict[int | str, dict] = {
    403: {"model": ErrorResponse, "description": "Voter is not assigned to an election"},
    404: {"model": ErrorResponse, "description": "Voter or election not found"},
    409: {"model": ErrorResponse, "description": "Already voted, or election not open"},
}


@ballot_router.get("/eligibility", response_model=EligibilityResponse, responses=_REJECTION_RESPONSES)
async def get_eligibility(
    voter_id: Annotated[int, Depends(get_current_voter_id)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> EligibilityResponse:
    """Report whether the calling voter may submit a ballot."""
    eligibility = await eligibility_service.check_eligibility(session, voter_id)
    return EligibilityResponse(
        voter_id=eligibility.voter_id,
        election_id=eligibility.election_id,
        status=eligibility.status,
    )


@ballot_router.get("", response_model=BallotResponse, responses=_REJECTION_RESPONSES)
async def get_my_ballot(
    voter_id: Annotated[int, Depends(get_current_voter_id)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> BallotResponse:
    """Return the ballot for the calling voter's election."""
    eligibility = await eligibility_service.check_eligibility(session, voter_id)
    ballot = await ballot_service.get_ballot(session, eligibility.election_id)
    return BallotResponse.from_definition(ballot)


@ballot_router.post(
    "/submit",
    response_model=BallotSubmitResponse,
    responses={
        **_REJECTION_RESPONSES,
        422: {"model": ErrorResponse, "description": "Selections do not match the ballot"},
        503: {"model": ErrorResponse, "description": "Temporary storage failure; safe to retry"},
    },
)
async def submit_ballot(
    request: BallotSubmitRequest,
    voter_id: Annotated[int, Depends(get_current_voter_id)],
    database: Annotated[Database, Depends(get_database)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BallotSubmitResponse:
    """Record the calling voter's full ballot and mark them as voted."""
    receipt = await submission_service.submit_ballot(
        database.session_factory,
        voter_id,
        request.selections,
        max_attempts=settings.ballot_submit_max_attempts,
        retry_base_delay=settings.ballot_submit_retry_base_delay,
    )
    return BallotSubmitResponse(
        election_id=receipt.election_id,
        votes_recorded=receipt.vote_count,
        submitted_at=receipt.submitted_at,
    )
