"""Voter administration API endpoints.

POST /voters: register a voter
GET /voters/{id}: voter detail
PUT /voters/{id}/election: assign a voter to an election
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, require_role
from ballot_api.models.user import User
from ballot_api.schemas.voter import VoterAssignRequest, VoterCreateRequest, VoterResponse
from ballot_api.services import election_service, voter_service

voters_router = APIRouter(prefix="/voters", tags=["voters"])


@voters_router.post("", response_model=VoterResponse, status_code=201)
async def create_voter(
    request: VoterCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> VoterResponse:
    """Register a voter, optionally assigned to an election. Admin-only."""
    if request.election_id is not None and await election_service.get_election(session, request.election_id) is None:
        raise HTTPException(status_code=404, detail="Election not found.")
    try:
        voter = await voter_service.create_voter(session, request)
    except voter_service.DuplicateVoterError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return VoterResponse.model_validate(voter)


@voters_router.get("/{voter_id}", response_model=VoterResponse)
async def get_voter(
    voter_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
) -> VoterResponse:
    """Get voter detail."""
    voter = await voter_service.get_voter(session, voter_id)
    if voter is None:
        raise HTTPException(status_code=404, detail="Voter not found.")
    return VoterResponse.model_validate(voter)


@voters_router.put("/{voter_id}/election", response_model=VoterResponse)
async def assign_voter(
    voter_id: int,
    request: VoterAssignRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> VoterResponse:
    """Assign a voter to an election. Refused once the voter has voted. Admin-only."""
    voter = await voter_service.get_voter(session, voter_id)
    if voter is None:
        raise HTTPException(status_code=404, detail="Voter not found.")
    if await election_service.get_election(session, request.election_id) is None:
        raise HTTPException(status_code=404, detail="Election not found.")
    try:
        voter = await voter_service.assign_voter(session, voter, request.election_id)
    except voter_service.VotersAlreadyVotedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return VoterResponse.model_validate(voter)
