"""Ballot Pydantic v2 schemas: ballot definition, eligibility, and submission.

``BallotSubmitRequest`` is the parsing boundary for submissions: the body
must be a non-empty map of positive position ids to positive candidate ids.
Any voter or election id a client sends is ignored; identity comes from
the access token.
"""

from datetime import datetime

from pydantic import BaseModel, Field, PositiveInt

from ballot_api.lib.ballot import BallotDefinition


class BallotCandidateResponse(BaseModel):
    """A candidate choice on the ballot."""

    id: int
    name: str
    party: str | None = None
    avatar_url: str | None = None


class BallotPositionResponse(BaseModel):
    """A position on the ballot with its candidates in ballot order."""

    id: int
    name: str
    candidates: list[BallotCandidateResponse]


class BallotResponse(BaseModel):
    """The full ballot for an election."""

    election_id: int
    election_name: str
    status: str
    start_date: datetime
    end_date: datetime
    positions: list[BallotPositionResponse]

    @classmethod
    def from_definition(cls, ballot: BallotDefinition) -> "BallotResponse":
        return cls(
            election_id=ballot.election_id,
            election_name=ballot.election_name,
            status=ballot.status,
            start_date=ballot.start_date,
            end_date=ballot.end_date,
            positions=[
                BallotPositionResponse(
                    id=p.id,
                    name=p.name,
                    candidates=[
                        BallotCandidateResponse(id=c.id, name=c.name, party=c.party, avatar_url=c.avatar_url)
                        for c in p.candidates
                    ],
                )
                for p in ballot.positions
            ],
        )


class EligibilityResponse(BaseModel):
    """A voter who may submit a ballot."""

    eligible: bool = True
    voter_id: int
    election_id: int
    status: str


class BallotSubmitRequest(BaseModel):
    """Ballot submission body."""

    selections: dict[PositiveInt, PositiveInt] = Field(
        min_length=1,
        description="Map of position id to the selected candidate id",
    )


class BallotSubmitResponse(BaseModel):
    """Successful submission."""

    success: bool = True
    election_id: int
    votes_recorded: int
    submitted_at: datetime
