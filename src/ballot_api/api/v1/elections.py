"""Election authoring API endpoints (administrators).

POST /elections: create election
GET /elections: list elections
GET /elections/{id}: election detail
PATCH /elections/{id}: update election
DELETE /elections/{id}: delete election
POST /elections/{id}/positions: add position
PUT /elections/{id}/positions/{position_id}: rename position
DELETE /elections/{id}/positions/{position_id}: delete position
POST /elections/{id}/positions/{position_id}/candidates: add candidate
PATCH /elections/{id}/positions/{position_id}/candidates/{candidate_id}: update candidate
DELETE /elections/{id}/positions/{position_id}/candidates/{candidate_id}: delete candidate
GET /elections/{id}/ballot: ballot preview
GET /elections/{id}/voters: list assigned voters
POST /elections/{id}/voters/import: assign unassigned voters
POST /elections/{id}/voters/remove: unassign voters
"""

import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.dependencies import get_async_session, require_role
from ballot_api.models.election import Candidate, Election, Position
from ballot_api.models.user import User
from ballot_api.schemas.ballot import BallotResponse
from ballot_api.schemas.common import PaginationMeta
from ballot_api.schemas.election import (
    CandidateCreateRequest,
    CandidateResponse,
    CandidateUpdateRequest,
    ElectionCreateRequest,
    ElectionDeleteResponse,
    ElectionResponse,
    ElectionUpdateRequest,
    PaginatedElectionListResponse,
    PositionCreateRequest,
    PositionResponse,
    PositionUpdateRequest,
)
from ballot_api.schemas.voter import (
    PaginatedVoterListResponse,
    VoterImportRequest,
    VoterImportResponse,
    VoterRemoveRequest,
    VoterRemoveResponse,
    VoterResponse,
)
from ballot_api.services import ballot_service, election_service, voter_service

elections_router = APIRouter(prefix="/elections", tags=["elections"])

_NOT_FOUND = "Election not found."


async def _election_or_404(session: AsyncSession, election_id: int) -> Election:
    election = await election_service.get_election(session, election_id)
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return election


async def _position_or_404(session: AsyncSession, election_id: int, position_id: int) -> Position:
    position = await election_service.get_position(session, election_id, position_id)
    if position is None:
        raise HTTPException(status_code=404, detail="Position not found.")
    return position


async def _candidate_or_404(session: AsyncSession, position_id: int, candidate_id: int) -> Candidate:
    candidate = await election_service.get_candidate(session, position_id, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found.")
    return candidate


@elections_router.post("", response_model=ElectionResponse, status_code=201)
async def create_election(
    request: ElectionCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> ElectionResponse:
    """Create an election. Admin-only."""
    try:
        election = await election_service.create_election(session, request)
    except election_service.InvalidElectionWindowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return ElectionResponse.model_validate(election)


@elections_router.get("", response_model=PaginatedElectionListResponse)
async def list_elections(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    status: str | None = Query(default=None, pattern="^(INACTIVE|ACTIVE|COMPLETED)$", description="Filter by status"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=20, ge=1, le=100, description="Results per page"),
) -> PaginatedElectionListResponse:
    """List elections, newest first."""
    items, total = await election_service.list_elections(session, status=status, page=page, page_size=page_size)
    return PaginatedElectionListResponse(
        items=[ElectionResponse.model_validate(e) for e in items],
        pagination=PaginationMeta(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total > 0 else 0,
        ),
    )


@elections_router.get("/{election_id}", response_model=ElectionResponse)
async def get_election(
    election_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
) -> ElectionResponse:
    """Get election detail."""
    election = await election_service.get_election(session, election_id)
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ElectionResponse.model_validate(election)


@elections_router.patch("/{election_id}", response_model=ElectionResponse)
async def update_election(
    election_id: int,
    request: ElectionUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> ElectionResponse:
    """Update election metadata, window, or status. Admin-only."""
    try:
        election = await election_service.update_election(session, election_id, request)
    except election_service.InvalidElectionWindowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ElectionResponse.model_validate(election)


@elections_router.post("/{election_id}/positions", response_model=PositionResponse, status_code=201)
async def add_position(
    election_id: int,
    request: PositionCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> PositionResponse:
    """Add a position to an INACTIVE election. Admin-only."""
    election = await election_service.get_election(session, election_id)
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    try:
        position = await election_service.add_position(session, election, request)
    except (election_service.BallotLockedError, election_service.DuplicatePositionError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return PositionResponse.model_validate(position)


@elections_router.post(
    "/{election_id}/positions/{position_id}/candidates",
    response_model=CandidateResponse,
    status_code=201,
)
async def add_candidate(
    election_id: int,
    position_id: int,
    request: CandidateCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> CandidateResponse:
    """Add a candidate to a position of an INACTIVE election. Admin-only."""
    election = await election_service.get_election(session, election_id)
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    position = await election_service.get_position(session, election_id, position_id)
    if position is None:
        raise HTTPException(status_code=404, detail="Position not found.")
    try:
        candidate = await election_service.add_candidate(session, election, position, request)
    except election_service.BallotLockedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return CandidateResponse.model_validate(candidate)


@elections_router.get("/{election_id}/ballot", response_model=BallotResponse)
async def preview_ballot(
    election_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
) -> BallotResponse:
    """Preview an election's ballot."""
    ballot = await ballot_service.get_ballot(session, election_id)
    return BallotResponse.from_definition(ballot)


@elections_router.post("/{election_id}/voters/remove", response_model=VoterRemoveResponse)
async def remove_voters(
    election_id: int,
    request: VoterRemoveRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> VoterRemoveResponse:
    """Unassign voters from an election. Refused if any of them has voted. Admin-only."""
    election = await election_service.get_election(session, election_id)
    if election is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    try:
        count = await voter_service.remove_voters_from_election(session, election_id, request.voter_ids)
    except voter_service.VotersAlreadyVotedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return VoterRemoveResponse(
        message=f"Successfully removed {count} voter(s) from the election",
        count=count,
    )


@elections_router.delete("/{election_id}", response_model=ElectionDeleteResponse)
async def delete_election(
    election_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> ElectionDeleteResponse:
    """Delete an election and its ballot. Refused once votes exist. Admin-only."""
    election = await _election_or_404(session, election_id)
    try:
        unassigned = await election_service.delete_election(session, election)
    except election_service.ElectionHasVotesError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return ElectionDeleteResponse(message="Election deleted successfully", voters_unassigned=unassigned)


@elections_router.put("/{election_id}/positions/{position_id}", response_model=PositionResponse)
async def update_position(
    election_id: int,
    position_id: int,
    request: PositionUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> PositionResponse:
    """Rename a position of an INACTIVE election. Admin-only."""
    election = await _election_or_404(session, election_id)
    position = await _position_or_404(session, election_id, position_id)
    try:
        position = await election_service.update_position(session, election, position, request)
    except (election_service.BallotLockedError, election_service.DuplicatePositionError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return PositionResponse.model_validate(position)


@elections_router.delete("/{election_id}/positions/{position_id}", status_code=204)
async def delete_position(
    election_id: int,
    position_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> Response:
    """Delete a position with no candidates from an INACTIVE election. Admin-only."""
    election = await _election_or_404(session, election_id)
    position = await _position_or_404(session, election_id, position_id)
    try:
        await election_service.delete_position(session, election, position)
    except (election_service.BallotLockedError, election_service.PositionHasCandidatesError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return Response(status_code=204)


@elections_router.patch(
    "/{election_id}/positions/{position_id}/candidates/{candidate_id}",
    response_model=CandidateResponse,
)
async def update_candidate(
    election_id: int,
    position_id: int,
    candidate_id: int,
    request: CandidateUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> CandidateResponse:
    """Update a candidate of an INACTIVE election. Admin-only."""
    election = await _election_or_404(session, election_id)
    await _position_or_404(session, election_id, position_id)
    candidate = await _candidate_or_404(session, position_id, candidate_id)
    try:
        candidate = await election_service.update_candidate(session, election, candidate, request)
    except election_service.BallotLockedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return CandidateResponse.model_validate(candidate)


@elections_router.delete("/{election_id}/positions/{position_id}/candidates/{candidate_id}", status_code=204)
async def delete_candidate(
    election_id: int,
    position_id: int,
    candidate_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> Response:
    """Delete a candidate from an INACTIVE election. Admin-only."""
    election = await _election_or_404(session, election_id)
    await _position_or_404(session, election_id, position_id)
    candidate = await _candidate_or_404(session, position_id, candidate_id)
    try:
        await election_service.delete_candidate(session, election, candidate)
    except (election_service.BallotLockedError, election_service.ElectionHasVotesError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return Response(status_code=204)


@elections_router.get("/{election_id}/voters", response_model=PaginatedVoterListResponse)
async def list_voters(
    election_id: int,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin", "viewer"))],
    status: str | None = Query(default=None, pattern="^(REGISTERED|VOTED)$", description="Filter by voter status"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Results per page"),
) -> PaginatedVoterListResponse:
    """List the voters assigned to an election, by last name."""
    await _election_or_404(session, election_id)
    items, total = await voter_service.list_election_voters(
        session, election_id, status=status, page=page, page_size=page_size
    )
    return PaginatedVoterListResponse(
        items=[VoterResponse.model_validate(v) for v in items],
        pagination=PaginationMeta(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total > 0 else 0,
        ),
    )


@elections_router.post("/{election_id}/voters/import", response_model=VoterImportResponse)
async def import_voters(
    election_id: int,
    request: VoterImportRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_role("admin"))],
) -> VoterImportResponse:
    """Assign unassigned voters to an election. Admin-only."""
    await _election_or_404(session, election_id)
    try:
        count = await voter_service.import_voters(session, election_id, request.voter_ids)
    except voter_service.NoVotersToImportError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return VoterImportResponse(message=f"Successfully imported {count} voter(s) into the election", count=count)
