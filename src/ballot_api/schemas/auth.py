"""Authentication Pydantic v2 schemas for administrators and voters."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class RefreshRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class TokenResponse(BaseModel):
    """JWT token pair response for administrators."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiration in seconds")


class UserCreateRequest(BaseModel):
    """Request to create a new administrator account."""

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    role: str = Field(default="admin", pattern="^(admin|viewer)$")


class UserResponse(BaseModel):
    """Administrator account information."""

    id: int
    username: str
    email: str
    role: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class VoterLoginRequest(BaseModel):
    """Voter login with email and password."""

    email: EmailStr
    password: str = Field(min_length=1)


class VoterTokenResponse(BaseModel):
    """Access token identifying a voter for the ballot endpoints."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiration in seconds")
    voter_id: int
    election_id: int
