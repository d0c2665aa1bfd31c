"""initial schema: users, elections, positions, candidates, voters, votes

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the administrator, election authoring, voter, and vote tables.
``votes`` carries a unique (voter_id, position_id) constraint so a voter
can never hold two votes for the same position.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'viewer')", name="ck_users_role"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- elections ---
    op.create_table(
        "elections",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="INACTIVE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('INACTIVE', 'ACTIVE', 'COMPLETED')", name="ck_election_status"),
        sa.CheckConstraint("end_date > start_date", name="ck_election_window"),
    )
    op.create_index("idx_elections_status", "elections", ["status"])

    # --- positions ---
    op.create_table(
        "positions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("election_id", "name", name="uq_position_election_name"),
    )
    op.create_index("idx_positions_election_id", "positions", ["election_id"])

    # --- candidates ---
    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("position_id", sa.Integer, sa.ForeignKey("positions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("party", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_candidates_position_id", "candidates", ["position_id"])

    # --- voters ---
    op.create_table(
        "voters",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="REGISTERED"),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="SET NULL"), nullable=True),
        sa.Column("voted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('REGISTERED', 'VOTED')", name="ck_voter_status"),
    )
    op.create_index("ix_voters_email", "voters", ["email"], unique=True)
    op.create_index("idx_voters_election_id", "voters", ["election_id"])
    op.create_index("idx_voters_status", "voters", ["status"])

    # --- votes ---
    op.create_table(
        "votes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("voter_id", sa.Integer, sa.ForeignKey("voters.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("election_id", sa.Integer, sa.ForeignKey("elections.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("position_id", sa.Integer, sa.ForeignKey("positions.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("candidate_id", sa.Integer, sa.ForeignKey("candidates.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("voter_id", "position_id", name="uq_vote_voter_position"),
    )
    op.create_index("idx_votes_election_id", "votes", ["election_id"])
    op.create_index("idx_votes_candidate_id", "votes", ["candidate_id"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("voters")
    op.drop_table("candidates")
    op.drop_table("positions")
    op.drop_table("elections")
    op.drop_table("users")
