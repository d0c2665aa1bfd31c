"""Rejection and failure types raised by the ballot core.

Every error carries a machine-readable ``code`` that the API layer returns
alongside a human-readable message.
"""


class BallotRejection(Exception):
    """Base class for every outcome that prevents a ballot from being recorded."""

    code = "ballot_rejected"
    default_message = "The ballot could not be recorded."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class VoterNotFoundError(BallotRejection):
    """The voter id does not resolve to a voter."""

    code = "voter_not_found"
    default_message = "Voter not found."


class NotAssignedError(BallotRejection):
    """The voter is not assigned to any election."""

    code = "not_assigned"
    default_message = "You are not assigned to an election."


class AlreadyVotedError(BallotRejection):
    """The voter has already cast their ballot."""

    code = "already_voted"
    default_message = "You have already voted in this election."


class ElectionNotFoundError(BallotRejection):
    """The election does not exist."""

    code = "election_not_found"
    default_message = "Election not found."


class ElectionClosedError(BallotRejection):
    """The election is not ACTIVE or the current time is outside its voting window."""

    code = "election_closed"
    default_message = "This election is not currently open for voting."


class InvalidSelectionError(BallotRejection):
    """The submitted selections do not match the election's ballot definition."""

    code = "invalid_selection"
    default_message = "The ballot selections are not valid for this election."


class TransientStoreFailure(BallotRejection):
    """The store failed in a way that left nothing committed; the submission may be retried."""

    code = "transient_failure"
    default_message = "Your ballot could not be recorded right now. Please try again."
