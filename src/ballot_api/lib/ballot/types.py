"""Plain data types shared by the ballot provider, validator, and submission engine."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CandidateDefinition:
    """A candidate as it appears on the ballot."""

    id: int
    name: str
    party: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class PositionDefinition:
    """A contested position with its candidates in ballot order."""

    id: int
    name: str
    candidates: tuple[CandidateDefinition, ...] = ()

    @property
    def candidate_ids(self) -> frozenset[int]:
        return frozenset(c.id for c in self.candidates)


@dataclass(frozen=True)
class BallotDefinition:
    """The full ballot for one election: positions in creation order."""

    election_id: int
    election_name: str
    status: str
    start_date: datetime
    end_date: datetime
    positions: tuple[PositionDefinition, ...] = ()

    @property
    def position_ids(self) -> frozenset[int]:
        return frozenset(p.id for p in self.positions)

    def position(self, position_id: int) -> PositionDefinition | None:
        """Return the position with ``position_id`` or None if it is not on this ballot."""
        for position in self.positions:
            if position.id == position_id:
                return position
        return None


@dataclass(frozen=True)
class Eligibility:
    """Result of a passing eligibility check."""

    voter_id: int
    election_id: int
    status: str


@dataclass(frozen=True)
class SubmissionReceipt:
    """Outcome of a committed ballot submission."""

    voter_id: int
    election_id: int
    vote_count: int
    submitted_at: datetime
    selections: dict[int, int] = field(default_factory=dict)
