"""Voter model: a person registered to cast one ballot in one election."""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ballot_api.models.base import Base, IdMixin, TimestampMixin
from ballot_api.models.election import Election


class VoterStatus(enum.StrEnum):
    """Voting status. REGISTERED -> VOTED happens once and is never reversed by submission."""

    REGISTERED = "REGISTERED"
    VOTED = "VOTED"


class Voter(Base, IdMixin, TimestampMixin):
    """Registered voter, optionally assigned to the election they may vote in."""

    __tablename__ = "voters"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default=VoterStatus.REGISTERED.value)
    election_id: Mapped[int | None] = mapped_column(
        ForeignKey("elections.id", ondelete="SET NULL"),
        nullable=True,
    )
    voted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    election: Mapped["Election | None"] = relationship()

    __table_args__ = (
        CheckConstraint("status IN ('REGISTERED', 'VOTED')", name="ck_voter_status"),
        Index("idx_voters_election_id", "election_id"),
        Index("idx_voters_status", "status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
