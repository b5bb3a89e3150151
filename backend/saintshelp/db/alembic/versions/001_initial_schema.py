"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- profile
- book
- conversation, conversation_turn
- usage_daily
- question_prompt
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # profile table
    op.create_table(
        "profile",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'blocked')", name="ck_profile_status"),
    )

    # book table
    op.create_table(
        "book",
        sa.Column("book_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=True),
        sa.Column("index_handle", sa.Text(), nullable=True),
        sa.Column("index_file_id", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("idx_book_owner_created", "book", ["owner_user_id", "created_at"])

    # conversation table
    op.create_table(
        "conversation",
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("idx_conversation_user_created", "conversation", ["user_id", "created_at"])

    # conversation_turn table
    op.create_table(
        "conversation_turn",
        sa.Column("turn_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("question", sa.Text(), nullable=True),
        sa.Column("selected_book_ids", postgresql.JSONB(), nullable=True),
        sa.Column("answer_passages", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["conversation_id"], ["conversation.conversation_id"], ondelete="CASCADE"
        ),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="ck_turn_role"),
    )
    op.create_index("idx_turn_conversation_created", "conversation_turn", ["conversation_id", "created_at"])
    op.create_index("idx_turn_role_created", "conversation_turn", ["role", "created_at"])

    # usage_daily table
    op.create_table(
        "usage_daily",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("day", sa.Date(), primary_key=True),
        sa.Column("count", sa.Integer(), server_default=sa.text("0"), nullable=False),
    )

    # question_prompt table
    op.create_table(
        "question_prompt",
        sa.Column("prompt_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("question_prompt")
    op.drop_table("usage_daily")
    op.drop_index("idx_turn_role_created", table_name="conversation_turn")
    op.drop_index("idx_turn_conversation_created", table_name="conversation_turn")
    op.drop_table("conversation_turn")
    op.drop_index("idx_conversation_user_created", table_name="conversation")
    op.drop_table("conversation")
    op.drop_index("idx_book_owner_created", table_name="book")
    op.drop_table("book")
    op.drop_table("profile")
