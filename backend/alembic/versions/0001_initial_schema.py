"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates all tables for the Laundromat application:
user_profiles, saved_photos, laundry_requests, status_transitions.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Stored by member name, matching SAEnum(LaundryStatus) on the model
laundry_status = sa.Enum("pending", "in_progress", "completed", "collected", name="laundrystatus")


def upgrade() -> None:
    # --- user_profiles ---
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("surname", sa.String(50), nullable=False),
        sa.Column("contact", sa.String(20), nullable=False),
        sa.Column("commune", sa.String(50), nullable=False),
        sa.Column("room", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_profiles_student_id", "user_profiles", ["student_id"])

    # --- saved_photos ---
    op.create_table(
        "saved_photos",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.String(20), nullable=False),
        sa.Column("photo_name", sa.String(100), nullable=False),
        sa.Column("photo_path", sa.String(200), nullable=False),
        sa.Column("photo_data", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_saved_photos_student_id", "saved_photos", ["student_id"])

    # --- laundry_requests ---
    op.create_table(
        "laundry_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("reference_number", sa.String(20), nullable=False, unique=True),
        sa.Column("student_id", sa.String(20), nullable=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("surname", sa.String(50), nullable=False),
        sa.Column("contact", sa.String(20), nullable=False),
        sa.Column("commune", sa.String(50), nullable=False),
        sa.Column("room", sa.String(20), nullable=True),
        sa.Column("clothes_count", sa.Integer, nullable=False),
        sa.Column("photos", sa.JSON, nullable=False),
        sa.Column("status", laundry_status, nullable=False, server_default="pending"),
        sa.Column("date_submitted", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("date_completed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notification_sent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("collection_name", sa.String(100), nullable=True),
        sa.Column("collection_contact", sa.String(20), nullable=True),
        sa.Column("collection_id_number", sa.String(20), nullable=True),
        sa.Column("collection_signature", sa.Text, nullable=True),
        sa.Column("collection_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_laundry_requests_reference_number", "laundry_requests", ["reference_number"])
    op.create_index("ix_laundry_requests_student_id", "laundry_requests", ["student_id"])

    # --- status_transitions ---
    op.create_table(
        "status_transitions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("request_id", sa.Integer, sa.ForeignKey("laundry_requests.id"), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=False),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("actor", sa.String(100), nullable=False, server_default="staff"),
        sa.Column("before_snapshot", sa.JSON, nullable=False),
        sa.Column("after_snapshot", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_status_transitions_request_id", "status_transitions", ["request_id"])


def downgrade() -> None:
    op.drop_table("status_transitions")
    op.drop_table("laundry_requests")
    op.drop_table("saved_photos")
    op.drop_table("user_profiles")
    laundry_status.drop(op.get_bind(), checkfirst=True)
