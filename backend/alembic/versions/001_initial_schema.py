"""Initial schema: accounts, connections, cuidotecas, feed, events, messages.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"), primary_key=True,
    )


def _fk(name: str, target: str, nullable: bool = False, ondelete: str | None = None) -> sa.Column:
    return sa.Column(
        name, postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete), nullable=nullable,
    )


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    """Create all tables."""

    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("university_id", sa.String(50), nullable=True),
        sa.Column("course", sa.String(100), nullable=True),
        sa.Column("semester", sa.String(20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("institution_name", sa.String(200), nullable=True),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        _created_at(),
    )

    # ── refresh_tokens / password_reset_tokens ───────────────────────
    op.create_table(
        "refresh_tokens",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_table(
        "password_reset_tokens",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("token", sa.String(100), unique=True, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )

    # ── children ──────────────────────────────────────────────────────
    op.create_table(
        "children",
        _id(),
        _fk("parent_id", "users.id"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("special_needs", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_children_parent_id", "children", ["parent_id"])

    # ── connections ───────────────────────────────────────────────────
    op.create_table(
        "university_connections",
        _id(),
        _fk("user_id", "users.id"),
        _fk("institution_id", "users.id"),
        _created_at(),
        sa.UniqueConstraint("user_id", "institution_id", name="uq_university_connection"),
    )
    op.create_index("ix_university_connections_user_id", "university_connections", ["user_id"])
    op.create_index(
        "ix_university_connections_institution_id", "university_connections", ["institution_id"],
    )

    op.create_table(
        "user_connections",
        _id(),
        _fk("requester_id", "users.id"),
        _fk("recipient_id", "users.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_user_connections_requester_id", "user_connections", ["requester_id"])
    op.create_index("ix_user_connections_recipient_id", "user_connections", ["recipient_id"])

    # ── cuidotecas & enrollments ─────────────────────────────────────
    op.create_table(
        "cuidotecas",
        _id(),
        _fk("institution_id", "users.id"),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("hours", sa.String(50), nullable=False),
        sa.Column("days", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}"),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("min_age", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_age", sa.Integer(), nullable=False, server_default="12"),
        sa.Column(
            "assigned_caretakers", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}",
        ),
        _created_at(),
    )
    op.create_index("ix_cuidotecas_institution_id", "cuidotecas", ["institution_id"])

    op.create_table(
        "cuidoteca_enrollments",
        _id(),
        _fk("cuidoteca_id", "cuidotecas.id", ondelete="CASCADE"),
        _fk("child_id", "children.id", ondelete="CASCADE"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("requested_days", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}"),
        sa.Column("requested_hours", sa.String(50), nullable=False),
        _created_at("enrollment_date"),
    )
    op.create_index("ix_cuidoteca_enrollments_cuidoteca_id", "cuidoteca_enrollments", ["cuidoteca_id"])
    op.create_index("ix_cuidoteca_enrollments_child_id", "cuidoteca_enrollments", ["child_id"])

    op.create_table(
        "cuidador_enrollments",
        _id(),
        _fk("cuidoteca_id", "cuidotecas.id", ondelete="CASCADE"),
        _fk("cuidador_id", "users.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("requested_days", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}"),
        sa.Column("requested_hours", sa.String(50), nullable=False),
        _created_at("enrollment_date"),
    )
    op.create_index("ix_cuidador_enrollments_cuidoteca_id", "cuidador_enrollments", ["cuidoteca_id"])
    op.create_index("ix_cuidador_enrollments_cuidador_id", "cuidador_enrollments", ["cuidador_id"])

    # ── posts ─────────────────────────────────────────────────────────
    op.create_table(
        "posts",
        _id(),
        _fk("author_id", "users.id"),
        _fk("institution_id", "users.id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("flagged", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])
    op.create_index("ix_posts_institution_id", "posts", ["institution_id"])

    op.create_table(
        "post_votes",
        _id(),
        _fk("post_id", "posts.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        sa.Column("vote_type", sa.String(10), nullable=False),
        _created_at(),
        sa.UniqueConstraint("post_id", "user_id", name="uq_post_vote_user"),
    )
    op.create_index("ix_post_votes_post_id", "post_votes", ["post_id"])

    # ── events ────────────────────────────────────────────────────────
    op.create_table(
        "events",
        _id(),
        _fk("institution_id", "users.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_events_institution_id", "events", ["institution_id"])

    op.create_table(
        "event_rsvps",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_rsvp_user"),
    )
    op.create_index("ix_event_rsvps_event_id", "event_rsvps", ["event_id"])

    op.create_table(
        "event_participations",
        _id(),
        _fk("event_id", "events.id", ondelete="CASCADE"),
        _fk("user_id", "users.id"),
        _fk("child_id", "children.id", nullable=True, ondelete="CASCADE"),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("observations", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_event_participations_event_id", "event_participations", ["event_id"])

    # ── notifications ─────────────────────────────────────────────────
    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(30), nullable=False, server_default="general"),
        _fk("connection_request_id", "user_connections.id", nullable=True, ondelete="CASCADE"),
        _fk("cuidoteca_id", "cuidotecas.id", nullable=True, ondelete="SET NULL"),
        _fk("event_id", "events.id", nullable=True, ondelete="SET NULL"),
        _fk("post_id", "posts.id", nullable=True, ondelete="SET NULL"),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # ── messages ──────────────────────────────────────────────────────
    op.create_table(
        "messages",
        _id(),
        _fk("sender_id", "users.id"),
        _fk("receiver_id", "users.id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"])
    op.create_index("ix_messages_sender_receiver", "messages", ["sender_id", "receiver_id"])

    # ── institution_documents ─────────────────────────────────────────
    op.create_table(
        "institution_documents",
        _id(),
        _fk("institution_id", "users.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("file_type", sa.String(100), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index(
        "ix_institution_documents_institution_id", "institution_documents", ["institution_id"],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "institution_documents",
        "messages",
        "notifications",
        "event_participations",
        "event_rsvps",
        "events",
        "post_votes",
        "posts",
        "cuidador_enrollments",
        "cuidoteca_enrollments",
        "cuidotecas",
        "user_connections",
        "university_connections",
        "children",
        "password_reset_tokens",
        "refresh_tokens",
        "users",
    ):
        op.drop_table(table)
