"""init analysis schema

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:10:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "predictions",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("image_path", sa.Text(), nullable=False),
        sa.Column("prediction_type", sa.String(length=16), nullable=False),
        sa.Column("confidence_score", sa.Integer(), nullable=False),
        sa.Column("analysis_details", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "prediction_type IN ('benign', 'malignant', 'normal')",
            name="ck_predictions_prediction_type",
        ),
        sa.CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 100",
            name="ck_predictions_confidence_range",
        ),
    )
    op.create_index("idx_predictions_user_created", "predictions", ["user_id", "created_at"])

    op.create_table(
        "symptom_entries",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("symptom", sa.String(length=200), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default=sa.text("'mild'")),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "severity IN ('mild', 'moderate', 'severe')",
            name="ck_symptom_entries_severity",
        ),
    )
    op.create_index("idx_symptom_entries_user_created", "symptom_entries", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_symptom_entries_user_created", table_name="symptom_entries")
    op.drop_table("symptom_entries")
    op.drop_index("idx_predictions_user_created", table_name="predictions")
    op.drop_table("predictions")
