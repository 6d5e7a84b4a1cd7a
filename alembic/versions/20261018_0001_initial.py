"""
Initial schema: users, sessions, quizzes, questions, results.

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "Users",
        sa.Column("UserID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("Name", sa.String(length=100), nullable=False),
        sa.Column("Email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("HashedPassword", sa.String(length=255), nullable=False),
        sa.Column("Role", sa.String(length=16), nullable=False, server_default="student"),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("DateCreated", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("LastLogin", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "UserSession",
        sa.Column("SessionID", sa.String(length=36), primary_key=True),
        sa.Column("UserID", sa.Integer(), sa.ForeignKey("Users.UserID"), nullable=False),
        sa.Column("CreatedAt", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("ExpiresAt", sa.DateTime(), nullable=True),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("IPAddress", sa.String(length=45), nullable=True),
        sa.Column("UserAgent", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_UserSession_UserID", "UserSession", ["UserID"])
    op.create_table(
        "Quiz",
        sa.Column("QuizID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("Title", sa.String(length=200), nullable=False),
        sa.Column("Description", sa.Text(), nullable=True),
        sa.Column("OwnerID", sa.Integer(), sa.ForeignKey("Users.UserID"), nullable=False),
        sa.Column("IsPublished", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("TimeLimitSeconds", sa.Integer(), nullable=True),
        sa.Column("DateCreated", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("LastUpdated", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_Quiz_OwnerID", "Quiz", ["OwnerID"])
    op.create_table(
        "Question",
        sa.Column("QuestionID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("QuizID", sa.Integer(), sa.ForeignKey("Quiz.QuizID"), nullable=False),
        sa.Column("Prompt", sa.Text(), nullable=False),
        sa.Column("Options", sa.JSON(), nullable=False),
        sa.Column("CorrectIndex", sa.Integer(), nullable=False),
        sa.Column("Points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("Position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_Question_QuizID", "Question", ["QuizID"])
    op.create_table(
        "Result",
        sa.Column("ResultID", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("QuizID", sa.Integer(), sa.ForeignKey("Quiz.QuizID"), nullable=False),
        sa.Column("UserID", sa.Integer(), sa.ForeignKey("Users.UserID"), nullable=False),
        sa.Column("Score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("MaxScore", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("Answers", sa.JSON(), nullable=False),
        sa.Column("Correct", sa.JSON(), nullable=True),
        sa.Column("SubmittedAt", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_Result_QuizID", "Result", ["QuizID"])
    op.create_index("ix_Result_UserID", "Result", ["UserID"])
    op.create_index("ix_Result_SubmittedAt", "Result", ["SubmittedAt"])


def downgrade() -> None:
    op.drop_index("ix_Result_SubmittedAt", table_name="Result")
    op.drop_index("ix_Result_UserID", table_name="Result")
    op.drop_index("ix_Result_QuizID", table_name="Result")
    op.drop_table("Result")
    op.drop_index("ix_Question_QuizID", table_name="Question")
    op.drop_table("Question")
    op.drop_index("ix_Quiz_OwnerID", table_name="Quiz")
    op.drop_table("Quiz")
    op.drop_index("ix_UserSession_UserID", table_name="UserSession")
    op.drop_table("UserSession")
    op.drop_table("Users")
