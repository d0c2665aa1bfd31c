"""Voter administration Pydantic v2 schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, PositiveInt

from ballot_api.schemas.common import PaginationMeta


class VoterCreateRequest(BaseModel):
    """Request to register a voter."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    election_id: PositiveInt | None = None


class VoterAssignRequest(BaseModel):
    """Request to assign a voter to an election."""

    election_id: PositiveInt


class VoterRemoveRequest(BaseModel):
    """Request to unassign voters from an election."""

    voter_ids: list[PositiveInt] = Field(min_length=1)


class VoterImportRequest(BaseModel):
    """Request to assign unassigned voters to an election in bulk.

    When ``voter_ids`` is omitted every unassigned voter who has not voted is
    imported.
    """

    voter_ids: list[PositiveInt] | None = Field(default=None, min_length=1)


class VoterImportResponse(BaseModel):
    """Result of a bulk voter import."""

    message: str
    count: int


class VoterRemoveResponse(BaseModel):
    """Result of unassigning voters."""

    message: str
    count: int


class VoterResponse(BaseModel):
    """Voter details (never includes the credential hash)."""

    id: int
    first_name: str
    last_name: str
    email: str
    status: str
    election_id: int | None = None
    voted_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaginatedVoterListResponse(BaseModel):
    """Paginated list of an election's voters."""

    items: list[VoterResponse]
    pagination: PaginationMeta
