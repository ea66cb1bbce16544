"""create_users_surveys_responses

Revision ID: 3c9e1f2a7b4d
Revises:
Create Date: 2025-09-01 00:00:00.000000

"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c9e1f2a7b4d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

survey_status = sa.Enum("draft", "published", "paused", "closed", name="surveystatus")
sentiment = sa.Enum("positive", "neutral", "negative", name="sentiment")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("api_token", sa.String(255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_api_token", "users", ["api_token"], unique=True)

    op.create_table(
        "surveys",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("estimated_time", sa.String(50), nullable=False),
        sa.Column("questions", sa.JSON(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=True),
        sa.Column("status", survey_status, nullable=False),
        sa.Column(
            "created_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("analytics", sa.JSON(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_surveys_id", "surveys", ["id"])
    op.create_index("ix_surveys_status", "surveys", ["status"])
    op.create_index("ix_surveys_created_at", "surveys", ["created_at"])
    op.create_index(
        "ix_surveys_created_by_status", "surveys", ["created_by", "status"]
    )

    op.create_table(
        "responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "survey_id",
            sa.Integer(),
            sa.ForeignKey("surveys.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("session_id", sa.String(255), nullable=True),
        sa.Column("responses", sa.JSON(), nullable=False),
        sa.Column("nps_score", sa.Integer(), nullable=True),
        sa.Column("sentiment", sentiment, nullable=True),
        sa.Column("completion_time", sa.Integer(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("ix_responses_id", "responses", ["id"])
    op.create_index("ix_responses_user_id", "responses", ["user_id"])
    op.create_index("ix_responses_nps_score", "responses", ["nps_score"])
    op.create_index("ix_responses_sentiment", "responses", ["sentiment"])
    op.create_index("ix_responses_created_at", "responses", ["created_at"])
    op.create_index(
        "ix_responses_survey_created", "responses", ["survey_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("responses")
    op.drop_table("surveys")
    op.drop_table("users")
    sentiment.drop(op.get_bind(), checkfirst=True)
    survey_status.drop(op.get_bind(), checkfirst=True)
