"""init assignment models"""

import sqlalchemy as sa
from alembic import op

revision = "20261019_init_assignment_models"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "coach_profiles",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("specialization", sa.String(length=255), nullable=False),
        sa.Column("experience", sa.String(length=255), nullable=False),
        sa.Column("rating", sa.Float, nullable=False),
        sa.Column("languages", sa.JSON, nullable=False),
        sa.Column("certifications", sa.JSON, nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "coach_availability",
        sa.Column("coach_id", sa.String(length=255), primary_key=True),
        sa.Column("status", sa.String(length=32), nullable=False, index=True),
        sa.Column("schedule", sa.JSON, nullable=False),
        sa.Column("current_load", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_capacity", sa.Integer, nullable=False, server_default="15"),
        sa.Column("unavailable_dates", sa.JSON, nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "athlete_assignments",
        sa.Column("athlete_id", sa.String(length=255), primary_key=True),
        sa.Column("athlete_name", sa.String(length=255), nullable=False),
        sa.Column("primary_coach_id", sa.String(length=255), nullable=True),
        sa.Column("primary_coach", sa.JSON, nullable=True),
        sa.Column("secondary_coaches", sa.JSON, nullable=False),
        sa.Column("history", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_athlete_assignments_primary_coach", "athlete_assignments", ["primary_coach_id"])


def downgrade() -> None:
    op.drop_index("ix_athlete_assignments_primary_coach", table_name="athlete_assignments")
    op.drop_table("athlete_assignments")
    op.drop_table("coach_availability")
    op.drop_table("coach_profiles")
