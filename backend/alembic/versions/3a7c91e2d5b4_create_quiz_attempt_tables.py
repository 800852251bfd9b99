"""Create quiz attempt tables

Revision ID: 3a7c91e2d5b4
Revises:
Create Date: 2026-10-19

Creates the attempt, question snapshot and leave audit tables, plus the
local education read models (quiz policy, completions).

The partial unique index ix_quiz_attempts_active allows at most one
unsubmitted, non-deleted attempt per (user, education). Concurrent starts
race on this index: the losing insert fails with an IntegrityError and the
caller resumes the winner's attempt.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3a7c91e2d5b4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "education_quiz_policies",
        sa.Column("education_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("pass_score", sa.Integer(), nullable=True),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=True),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("education_id"),
    )

    op.create_table(
        "education_completions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("education_id", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "education_id", name="uq_education_completions_user_edu"
        ),
    )
    op.create_index(
        op.f("ix_education_completions_id"), "education_completions", ["id"]
    )
    op.create_index(
        op.f("ix_education_completions_user_id"), "education_completions", ["user_id"]
    )
    op.create_index(
        op.f("ix_education_completions_education_id"),
        "education_completions",
        ["education_id"],
    )

    op.create_table(
        "quiz_attempts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("education_id", sa.Integer(), nullable=False),
        sa.Column("education_version", sa.Integer(), nullable=True),
        sa.Column("attempt_no", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("leave_count", sa.Integer(), nullable=False),
        sa.Column("total_leave_seconds", sa.Integer(), nullable=False),
        sa.Column("last_leave_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=True),
        sa.Column("correct_count", sa.Integer(), nullable=True),
        sa.Column("wrong_count", sa.Integer(), nullable=True),
        sa.Column("total_count", sa.Integer(), nullable=True),
        sa.Column("time_limit_seconds", sa.Integer(), nullable=True),
        sa.Column("pass_score", sa.Integer(), nullable=True),
        sa.Column("time_limit_exceeded", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "education_id", "attempt_no", name="uq_quiz_attempts_user_edu_no"
        ),
        sa.CheckConstraint(
            "score IS NULL OR (score >= 0 AND score <= 100)",
            name="ck_quiz_attempts_score_range",
        ),
        sa.CheckConstraint(
            "total_count IS NULL OR correct_count + wrong_count = total_count",
            name="ck_quiz_attempts_counts",
        ),
    )
    op.create_index(op.f("ix_quiz_attempts_user_id"), "quiz_attempts", ["user_id"])
    op.create_index(
        op.f("ix_quiz_attempts_education_id"), "quiz_attempts", ["education_id"]
    )
    op.create_index(
        op.f("ix_quiz_attempts_department"), "quiz_attempts", ["department"]
    )
    op.create_index(
        op.f("ix_quiz_attempts_submitted_at"), "quiz_attempts", ["submitted_at"]
    )
    op.create_index(
        "ix_quiz_attempts_user_education", "quiz_attempts", ["user_id", "education_id"]
    )
    # Partial unique index: one in-progress attempt per (user, education)
    op.execute(
        """
        CREATE UNIQUE INDEX ix_quiz_attempts_active
        ON quiz_attempts (user_id, education_id)
        WHERE submitted_at IS NULL AND deleted_at IS NULL
        """
    )

    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("attempt_id", sa.String(length=36), nullable=False),
        sa.Column("question_order", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("choices", sa.JSON(), nullable=False),
        sa.Column("correct_index", sa.Integer(), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("selected_index", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["attempt_id"], ["quiz_attempts.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "attempt_id", "question_order", name="uq_quiz_questions_attempt_order"
        ),
    )
    op.create_index(op.f("ix_quiz_questions_id"), "quiz_questions", ["id"])
    op.create_index(
        op.f("ix_quiz_questions_attempt_id"), "quiz_questions", ["attempt_id"]
    )

    op.create_table(
        "quiz_leave_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("attempt_id", sa.String(length=36), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=50), nullable=True),
        sa.Column("leave_seconds", sa.Integer(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["attempt_id"], ["quiz_attempts.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_quiz_leave_events_id"), "quiz_leave_events", ["id"])
    op.create_index(
        op.f("ix_quiz_leave_events_attempt_id"), "quiz_leave_events", ["attempt_id"]
    )


def downgrade() -> None:
    op.drop_table("quiz_leave_events")
    op.drop_table("quiz_questions")
    op.drop_index("ix_quiz_attempts_active", table_name="quiz_attempts")
    op.drop_table("quiz_attempts")
    op.drop_table("education_completions")
    op.drop_table("education_quiz_policies")
