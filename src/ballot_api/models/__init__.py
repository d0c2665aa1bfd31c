"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from ballot_api.models.election import Candidate, Election, ElectionStatus, Position
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus

__all__ = [
    "Candidate",
    "Election",
    "ElectionStatus",
    "Position",
    "User",
    "Vote",
    "Voter",
    "VoterStatus",
]
