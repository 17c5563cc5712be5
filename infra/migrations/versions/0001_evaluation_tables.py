"""
Evaluation and settings tables.

Mirrors the tables `SqlStorageBackend` creates when AUTO_CREATE_SCHEMA=1.
Production databases should be created with `alembic upgrade head` instead.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_evaluation_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # One row per scored interaction, owned by exactly one tenant.
    op.create_table(
        "evaluations",
        sa.Column("eval_id", sa.UUID(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("interaction_id", sa.String(length=128), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("latency_ms", sa.Integer(), nullable=False),
        sa.Column("pii_tokens_redacted", sa.Integer(), nullable=True),
        sa.Column("flags", sa.JSON(), nullable=True),
        sa.CheckConstraint("score >= 0 AND score <= 100", name="ck_evaluations_score_range"),
        sa.CheckConstraint("latency_ms >= 0", name="ck_evaluations_latency_non_negative"),
    )
    # Every query filters by tenant; stats pages scan by time.
    op.create_index("ix_evaluations_user_created", "evaluations", ["user_id", "created_at"])

    # Settings form: one row per tenant.
    op.create_table(
        "eval_configs",
        sa.Column("user_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("run_policy", sa.String(length=16), nullable=False),
        sa.Column("sample_rate_pct", sa.Integer(), nullable=False),
        sa.Column("obfuscate_pii", sa.Boolean(), nullable=False),
        sa.Column("max_eval_per_day", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("eval_configs")
    op.drop_index("ix_evaluations_user_created", table_name="evaluations")
    op.drop_table("evaluations")
