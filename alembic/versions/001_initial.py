"""Initial schema: users, sessions, flashcard_decks, flashcards, flashcard_progress.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "flashcard_decks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("course_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(32), server_default="draft"),
        sa.Column("card_count", sa.Integer, server_default="0"),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "flashcards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("deck_id", sa.String(36), sa.ForeignKey("flashcard_decks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("front_text", sa.Text, nullable=False),
        sa.Column("back_text", sa.Text, nullable=False),
        sa.Column("hint", sa.String(500), nullable=True),
        sa.Column("order_index", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "flashcard_progress",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("learner_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("card_id", sa.String(36), sa.ForeignKey("flashcards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("deck_id", sa.String(36), sa.ForeignKey("flashcard_decks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ease_factor", sa.Float, server_default="2.5"),
        sa.Column("interval_days", sa.Integer, server_default="0"),
        sa.Column("repetitions", sa.Integer, server_default="0"),
        sa.Column("next_review_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_rating", sa.Integer, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("learner_id", "card_id", name="uq_progress_learner_card"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_sessions_token_hash", "sessions", ["token_hash"])
    op.create_index("ix_flashcard_decks_course_id", "flashcard_decks", ["course_id"])
    op.create_index("ix_flashcards_deck_id", "flashcards", ["deck_id"])
    op.create_index("ix_flashcard_progress_learner_id", "flashcard_progress", ["learner_id"])
    op.create_index("ix_flashcard_progress_card_id", "flashcard_progress", ["card_id"])
    op.create_index("ix_flashcard_progress_deck_id", "flashcard_progress", ["deck_id"])


def downgrade() -> None:
    op.drop_table("flashcard_progress")
    op.drop_table("flashcards")
    op.drop_table("flashcard_decks")
    op.drop_table("sessions")
    op.drop_table("users")
