"""Create survey_sessions, survey_responses and device_fingerprints.

  - ``survey_sessions`` holds the frozen question snapshot (JSONB) and the
    completion/validity fields
  - ``survey_responses`` holds one answer per (session, question), enforced
    by ``uq_response_session_question`` which the upsert targets
  - ``device_fingerprints`` counts sessions per device for the soft
    duplicate flag

Revision ID: 20261001_survey_tables
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261001_survey_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Sessions ---
    op.create_table(
        "survey_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("participant_hash", sa.Text(), nullable=True),
        sa.Column("fingerprint", sa.Text(), nullable=True),
        sa.Column("language", sa.String(8), nullable=False, server_default="en"),
        sa.Column("source_code", sa.Text(), nullable=True),
        sa.Column("device_info", JSONB(), nullable=True),
        sa.Column(
            "questions", JSONB(), nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("started_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column("response_time", sa.Integer(), nullable=True),
        sa.CheckConstraint("role IN ('nurse', 'doctor')", name="ck_session_role"),
    )
    op.create_index(
        "ix_sessions_participant",
        "survey_sessions",
        ["participant_hash", "started_at"],
        postgresql_where=sa.text("participant_hash IS NOT NULL"),
    )
    op.create_index(
        "ix_sessions_fingerprint",
        "survey_sessions",
        ["fingerprint", "started_at"],
        postgresql_where=sa.text("fingerprint IS NOT NULL"),
    )

    # --- Responses ---
    op.create_table(
        "survey_responses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "session_id",
            UUID(as_uuid=True),
            sa.ForeignKey("survey_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", sa.Text(), nullable=False),
        sa.Column("value", JSONB(), nullable=True),
        sa.Column("time_taken", sa.Integer(), nullable=True),
        sa.Column("recorded_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "session_id", "question_id", name="uq_response_session_question",
        ),
    )
    op.create_index(
        "ix_survey_responses_session_id", "survey_responses", ["session_id"],
    )

    # --- Fingerprints ---
    op.create_table(
        "device_fingerprints",
        sa.Column("fingerprint", sa.Text(), primary_key=True),
        sa.Column("session_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_seen_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("last_seen_at", TIMESTAMP(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("device_fingerprints")
    op.drop_index("ix_survey_responses_session_id", table_name="survey_responses")
    op.drop_table("survey_responses")
    op.drop_index("ix_sessions_fingerprint", table_name="survey_sessions")
    op.drop_index("ix_sessions_participant", table_name="survey_sessions")
    op.drop_table("survey_sessions")
