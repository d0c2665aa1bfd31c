"""Vote model: one immutable selection recorded by ballot submission."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ballot_api.models.base import Base, IdMixin


class Vote(Base, IdMixin):
    """A voter's choice for one position. Written once, never updated or deleted."""

    __tablename__ = "votes"

    voter_id: Mapped[int] = mapped_column(ForeignKey("voters.id", ondelete="RESTRICT"), nullable=False)
    election_id: Mapped[int] = mapped_column(ForeignKey("elections.id", ondelete="RESTRICT"), nullable=False)
    position_id: Mapped[int] = mapped_column(ForeignKey("positions.id", ondelete="RESTRICT"), nullable=False)
    candidate_id: Mapped[int] = mapped_column(ForeignKey("candidates.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("voter_id", "position_id", name="uq_vote_voter_position"),
        Index("idx_votes_election_id", "election_id"),
        Index("idx_votes_candidate_id", "candidate_id"),
    )
