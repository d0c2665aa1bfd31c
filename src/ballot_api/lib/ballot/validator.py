"""Pure validation rules for ballot submissions.

Checks a selection map against a ``BallotDefinition`` and an election's
status and voting window. No database access happens here; the submission
engine loads the definition inside its transaction and calls these
functions before writing anything.
"""

from collections.abc import Mapping
from datetime import UTC, datetime

from ballot_api.lib.ballot.errors import ElectionClosedError, InvalidSelectionError
from ballot_api.lib.ballot.types import BallotDefinition

ACTIVE_STATUS = "ACTIVE"


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are assumed UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_within_window(start_date: datetime, end_date: datetime, now: datetime) -> bool:
    """Check ``start_date <= now < end_date``."""
    return as_utc(start_date) <= as_utc(now) < as_utc(end_date)


def ensure_election_open(status: str, start_date: datetime, end_date: datetime, now: datetime) -> None:
    """Raise ElectionClosedError unless the election accepts ballots at ``now``.

    Raises:
        ElectionClosedError: If status is not ACTIVE or ``now`` is outside the window.
    """
    if status != ACTIVE_STATUS:
        msg = f"This election is {status.lower()} and is not accepting ballots."
        raise ElectionClosedError(msg)
    if not is_within_window(start_date, end_date, now):
        msg = "This election's voting window is closed."
        raise ElectionClosedError(msg)


def validate_selections(ballot: BallotDefinition, selections: Mapping[int, int]) -> None:
    """Verify that ``selections`` is a full, legal ballot for ``ballot``.

    Every position on the ballot must have exactly one selection, no
    selection may name a position that is not on the ballot, and each
    selected candidate must stand for the position it was selected under.

    Args:
        ballot: The election's ballot definition.
        selections: Mapping of position id to candidate id.

    Raises:
        InvalidSelectionError: On the first mismatch found.
    """
    if not ballot.positions:
        msg = "This election has no positions to vote on."
        raise InvalidSelectionError(msg)

    selected = set(selections)
    unknown = sorted(selected - ballot.position_ids)
    if unknown:
        msg = f"Selections reference positions not on this ballot: {unknown}"
        raise InvalidSelectionError(msg)

    missing = [p for p in ballot.positions if p.id not in selected]
    if missing:
        names = ", ".join(p.name for p in missing)
        msg = f"You must vote for all positions. Missing: {names}"
        raise InvalidSelectionError(msg)

    for position in ballot.positions:
        candidate_id = selections[position.id]
        if candidate_id not in position.candidate_ids:
            msg = f"Candidate {candidate_id} is not running for {position.name}."
            raise InvalidSelectionError(msg)
