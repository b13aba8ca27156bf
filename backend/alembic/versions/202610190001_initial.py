"""initial schema

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="USER"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("role IN ('ADMIN', 'USER', 'EXTERNAL')", name="chk_user_role"),
        sa.CheckConstraint("status IN ('ACTIVE', 'INACTIVE')", name="chk_user_status"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_status", "users", ["status"])

    op.create_table(
        "refresh_sessions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("replaced_by_id", sa.String(length=36), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["replaced_by_id"], ["refresh_sessions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_refresh_sessions_user_revoked", "refresh_sessions", ["user_id", "revoked"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=64), nullable=True),
        sa.Column("target_id", sa.String(length=128), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_events_id", "audit_events", ["id"])
    op.create_index("idx_audit_events_created_at", "audit_events", ["created_at"])
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("ix_audit_events_target_id", "audit_events", ["target_id"])
    op.create_index("ix_audit_events_target_type", "audit_events", ["target_type"])

    op.create_table(
        "areas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=191), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_areas_id", "areas", ["id"])

    op.create_table(
        "comparison_groups",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=191), nullable=False),
        sa.Column("area_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("keterangan", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comparison_groups_id", "comparison_groups", ["id"])
    op.create_index("idx_comparison_groups_area", "comparison_groups", ["area_id"])
    op.create_index("idx_comparison_groups_created_at", "comparison_groups", ["created_at"])

    op.create_table(
        "photos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("area_id", sa.Integer(), nullable=False),
        sa.Column("comparison_group_id", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=10), nullable=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("thumb_filename", sa.String(length=255), nullable=True),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("url", sa.String(length=512), nullable=False),
        sa.Column("thumb_url", sa.String(length=512), nullable=True),
        sa.Column("mime", sa.String(length=64), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("taken_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("keterangan", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"]),
        sa.ForeignKeyConstraint(["comparison_group_id"], ["comparison_groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("comparison_group_id", "category", name="uq_photo_group_category"),
        sa.CheckConstraint(
            "category IS NULL OR category IN ('BEFORE', 'ACTION', 'AFTER')",
            name="chk_photo_category",
        ),
    )
    op.create_index("ix_photos_id", "photos", ["id"])
    op.create_index("idx_photos_area", "photos", ["area_id"])
    op.create_index("idx_photos_created_at", "photos", ["created_at"])

    op.create_table(
        "program_info_images",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=191), nullable=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("thumb_filename", sa.String(length=255), nullable=True),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("url", sa.String(length=512), nullable=False),
        sa.Column("thumb_url", sa.String(length=512), nullable=True),
        sa.Column("mime", sa.String(length=64), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_program_info_images_id", "program_info_images", ["id"])
    op.create_index("idx_program_info_display_order", "program_info_images", ["display_order"])

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=191), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_vendors_id", "vendors", ["id"])

    op.create_table(
        "fads",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("no_fad", sa.String(length=100), nullable=True),
        sa.Column("item", sa.String(length=255), nullable=True),
        sa.Column("plant", sa.String(length=100), nullable=True),
        sa.Column("terima_fad", sa.DateTime(), nullable=True),
        sa.Column("terima_bbm", sa.DateTime(), nullable=True),
        sa.Column("vendor", sa.String(length=191), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=100), nullable=True),
        sa.Column("deskripsi", sa.Text(), nullable=True),
        sa.Column("keterangan", sa.Text(), nullable=True),
        sa.Column("bast", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_fads_no_fad", "fads", ["no_fad"])
    op.create_index("idx_fads_terima_fad", "fads", ["terima_fad"])
    op.create_index("idx_fads_status", "fads", ["status"])


def downgrade() -> None:
    op.drop_index("idx_fads_status", table_name="fads")
    op.drop_index("idx_fads_terima_fad", table_name="fads")
    op.drop_index("idx_fads_no_fad", table_name="fads")
    op.drop_table("fads")

    op.drop_index("ix_vendors_id", table_name="vendors")
    op.drop_table("vendors")

    op.drop_index("idx_program_info_display_order", table_name="program_info_images")
    op.drop_index("ix_program_info_images_id", table_name="program_info_images")
    op.drop_table("program_info_images")

    op.drop_index("idx_photos_created_at", table_name="photos")
    op.drop_index("idx_photos_area", table_name="photos")
    op.drop_index("ix_photos_id", table_name="photos")
    op.drop_table("photos")

    op.drop_index("idx_comparison_groups_created_at", table_name="comparison_groups")
    op.drop_index("idx_comparison_groups_area", table_name="comparison_groups")
    op.drop_index("ix_comparison_groups_id", table_name="comparison_groups")
    op.drop_table("comparison_groups")

    op.drop_index("ix_areas_id", table_name="areas")
    op.drop_table("areas")

    op.drop_index("ix_audit_events_target_type", table_name="audit_events")
    op.drop_index("ix_audit_events_target_id", table_name="audit_events")
    op.drop_index("ix_audit_events_action", table_name="audit_events")
    op.drop_index("idx_audit_events_created_at", table_name="audit_events")
    op.drop_index("ix_audit_events_id", table_name="audit_events")
    op.drop_table("audit_events")

    op.drop_index("idx_refresh_sessions_user_revoked", table_name="refresh_sessions")
    op.drop_table("refresh_sessions")

    op.drop_index("idx_users_status", table_name="users")
    op.drop_index("idx_users_role", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
