"""Election authoring ORM models.

Provides Election, Position, and Candidate. These rows are written by
administrators ahead of voting and are read-only from the ballot
submission path.
"""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ballot_api.models.base import Base, IdMixin, TimestampMixin


class ElectionStatus(enum.StrEnum):
    """Lifecycle status of an election."""

    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Election(Base, IdMixin, TimestampMixin):
    """An election with a voting window ``[start_date, end_date)``."""

    __tablename__ = "elections"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default=ElectionStatus.INACTIVE.value)

    # Relationships
    positions: Mapped[list["Position"]] = relationship(
        back_populates="election",
        cascade="all, delete-orphan",
        order_by="Position.id",
    )

    __table_args__ = (
        CheckConstraint("status IN ('INACTIVE', 'ACTIVE', 'COMPLETED')", name="ck_election_status"),
        CheckConstraint("end_date > start_date", name="ck_election_window"),
        Index("idx_elections_status", "status"),
    )


class Position(Base, IdMixin):
    """A contested position on an election's ballot; one winner per voter."""

    __tablename__ = "positions"

    election_id: Mapped[int] = mapped_column(
        ForeignKey("elections.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    election: Mapped["Election"] = relationship(back_populates="positions")
    candidates: Mapped[list["Candidate"]] = relationship(
        back_populates="position",
        cascade="all, delete-orphan",
        order_by="Candidate.id",
    )

    __table_args__ = (
        UniqueConstraint("election_id", "name", name="uq_position_election_name"),
        Index("idx_positions_election_id", "election_id"),
    )


class Candidate(Base, IdMixin):
    """A candidate standing for exactly one position."""

    __tablename__ = "candidates"

    position_id: Mapped[int] = mapped_column(
        ForeignKey("positions.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    position: Mapped["Position"] = relationship(back_populates="candidates")

    __table_args__ = (Index("idx_candidates_position_id", "position_id"),)
