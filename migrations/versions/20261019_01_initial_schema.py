"""Initial workout log schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "workouts",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("exercise_name", sa.String(length=100), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("calories_burned", sa.Integer(), nullable=False),
        sa.Column("workout_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_workouts_id", "workouts", ["id"], unique=True)
    op.create_index("ix_workouts_created_at", "workouts", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_workouts_created_at", table_name="workouts")
    op.drop_index("ix_workouts_id", table_name="workouts")
    op.drop_table("workouts")
