"""Ballot core library: data types, rejection errors, and selection validation.

Public API:
    - ``BallotDefinition`` / ``PositionDefinition`` / ``CandidateDefinition``: ballot shape
    - ``Eligibility``: passing eligibility check
    - ``SubmissionReceipt``: committed submission outcome
    - ``validate_selections``: full-ballot selection check
    - ``ensure_election_open``: election status and window check
    - ``BallotRejection`` and subclasses: rejection taxonomy
"""

from ballot_api.lib.ballot.errors import (
    AlreadyVotedError,
    BallotRejection,
    ElectionClosedError,
    ElectionNotFoundError,
    InvalidSelectionError,
    NotAssignedError,
    TransientStoreFailure,
    VoterNotFoundError,
)
from ballot_api.lib.ballot.types import (
    BallotDefinition,
    CandidateDefinition,
    Eligibility,
    PositionDefinition,
    SubmissionReceipt,
)
from ballot_api.lib.ballot.validator import as_utc, ensure_election_open, is_within_window, validate_selections

__all__ = [
    "AlreadyVotedError",
    "BallotDefinition",
    "BallotRejection",
    "CandidateDefinition",
    "ElectionClosedError",
    "ElectionNotFoundError",
    "Eligibility",
    "InvalidSelectionError",
    "NotAssignedError",
    "PositionDefinition",
    "SubmissionReceipt",
    "TransientStoreFailure",
    "VoterNotFoundError",
    "as_utc",
    "ensure_election_open",
    "is_within_window",
    "validate_selections",
]
