"""Initial schema: event tracks, events, feedbacks, recommended.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "event_tracks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.Text(), nullable=True),
        sa.Column("cover_image_data", sa.LargeBinary(), nullable=True),
        sa.Column("overlay_image", sa.Text(), nullable=True),
        sa.Column("overlay_image_data", sa.LargeBinary(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_event_tracks_id", "event_tracks", ["id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("track_id", sa.Integer(), sa.ForeignKey("event_tracks.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("long_description", sa.Text(), nullable=True),
        sa.Column("speakers", sa.JSON(), nullable=False),
        sa.Column("initial_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("available_seats", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cover_image", sa.Text(), nullable=True),
        sa.Column("cover_image_data", sa.LargeBinary(), nullable=True),
        sa.Column("card_image", sa.Text(), nullable=True),
        sa.Column("card_image_data", sa.LargeBinary(), nullable=True),
        sa.Column("track_name", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        sa.CheckConstraint("capacity IS NULL OR capacity >= 0", name="check_capacity_non_negative"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Every catalog read and track cascade filters events by track
    op.create_index("ix_events_track_id", "events", ["track_id"])

    op.create_table(
        "feedbacks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("stars", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("stars BETWEEN 1 AND 5", name="check_feedback_stars_range"),
    )
    op.create_index("ix_feedbacks_id", "feedbacks", ["id"])
    op.create_index("ix_feedbacks_event_id", "feedbacks", ["event_id"])

    op.create_table(
        "recommended",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.UniqueConstraint("event_id", name="uq_recommended_event"),
    )
    op.create_index("ix_recommended_id", "recommended", ["id"])


def downgrade() -> None:
    op.drop_table("recommended")
    op.drop_table("feedbacks")
    op.drop_table("events")
    op.drop_table("event_tracks")
