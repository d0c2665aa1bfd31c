"""Election authoring Pydantic v2 schemas.

Request and response shapes for elections, positions, and candidates.
"""

from datetime import datetime

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from ballot_api.schemas.common import PaginationMeta

_STATUS_PATTERN = "^(INACTIVE|ACTIVE|COMPLETED)$"


class ElectionCreateRequest(BaseModel):
    """Request to create an election."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    start_date: AwareDatetime
    end_date: AwareDatetime
    status: str = Field(default="INACTIVE", pattern=_STATUS_PATTERN)


class ElectionUpdateRequest(BaseModel):
    """Partial update of an election; omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime | None = None
    status: str | None = Field(default=None, pattern=_STATUS_PATTERN)

    @field_validator("name", "start_date", "end_date", "status")
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Only description may be cleared; the other fields are required columns."""
        if v is None:
            msg = "may be omitted but not null"
            raise ValueError(msg)
        return v


class ElectionResponse(BaseModel):
    """Election details."""

    id: int
    name: str
    description: str | None = None
    start_date: datetime
    end_date: datetime
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedElectionListResponse(BaseModel):
    """Paginated list of elections."""

    items: list[ElectionResponse]
    pagination: PaginationMeta


class PositionCreateRequest(BaseModel):
    """Request to add a position to an election."""

    name: str = Field(min_length=1, max_length=255)


class PositionResponse(BaseModel):
    """A position on an election's ballot."""

    id: int
    election_id: int
    name: str

    model_config = {"from_attributes": True}


class CandidateCreateRequest(BaseModel):
    """Request to add a candidate to a position."""

    name: str = Field(min_length=1, max_length=255)
    party: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None


class CandidateResponse(BaseModel):
    """A candidate standing for a position."""

    id: int
    position_id: int
    name: str
    party: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}



class PositionUpdateRequest(BaseModel):
    """Request to rename a position."""

    name: str = Field(min_length=1, max_length=255)


class CandidateUpdateRequest(BaseModel):
    """Partial update of a candidate; omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    party: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None

    @field_validator("name")
    @classmethod
    def reject_null_name(cls, v: str | None) -> str | None:
        if v is None:
            msg = "may be omitted but not null"
            raise ValueError(msg)
        return v


class ElectionDeleteResponse(BaseModel):
    """Result of deleting an election."""

    message: str
    voters_unassigned: int
