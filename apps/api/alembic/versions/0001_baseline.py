"""Baseline migration - users, numbered records, record number pool and approval workflows

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

NUMBERED_TABLES = (
    "organizations",
    "hiring_managers",
    "jobs",
    "leads",
    "job_seekers",
    "placements",
    "tasks",
)


def _record_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("record_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="Active"),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archive_reason", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _org_fk() -> sa.Column:
    return sa.Column(
        "organization_id",
        sa.Uuid(),
        sa.ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
    )


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="recruiter"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    # ==========================================================================
    # Record number pool
    # ==========================================================================
    op.create_table(
        "reusable_numbers",
        sa.Column("module_type", sa.String(50), primary_key=True),
        sa.Column("number", sa.Integer(), primary_key=True),
    )
    op.create_table(
        "module_sequences",
        sa.Column("module_type", sa.String(50), primary_key=True),
        sa.Column("current_value", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # ==========================================================================
    # Numbered records
    # ==========================================================================
    op.create_table(
        "organizations",
        *_record_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "parent_organization_id",
            sa.Uuid(),
            sa.ForeignKey("organizations.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("custom_fields", JSON_TYPE, nullable=False),
    )
    op.create_table(
        "hiring_managers",
        *_record_columns(),
        _org_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
    )
    op.create_table(
        "jobs",
        *_record_columns(),
        _org_fk(),
        sa.Column("title", sa.String(255), nullable=False),
    )
    op.create_table(
        "leads",
        *_record_columns(),
        _org_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
    )
    op.create_table(
        "job_seekers",
        *_record_columns(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("custom_fields", JSON_TYPE, nullable=False),
    )
    op.create_table(
        "placements",
        *_record_columns(),
        sa.Column("job_id", sa.Uuid(), sa.ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "job_seeker_id",
            sa.Uuid(),
            sa.ForeignKey("job_seekers.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_table(
        "tasks",
        *_record_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "job_seeker_id",
            sa.Uuid(),
            sa.ForeignKey("job_seekers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _org_fk(),
    )
    for table in NUMBERED_TABLES:
        op.create_index(f"idx_{table}_status_archived", table, ["status", "archived_at"])

    # ==========================================================================
    # Polymorphic child rows
    # ==========================================================================
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        _user_fk("created_by_user_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_notes_entity", "notes", ["entity_type", "entity_id"])

    op.create_table(
        "record_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("details", JSON_TYPE, nullable=False),
        _user_fk("performed_by_user_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_record_history_entity", "record_history", ["entity_type", "entity_id"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        _user_fk("uploaded_by_user_id"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_documents_entity", "documents", ["entity_type", "entity_id"])

    # ==========================================================================
    # Scheduled tasks
    # ==========================================================================
    op.create_table(
        "scheduled_tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("task_type", sa.String(50), nullable=False),
        sa.Column("payload", JSON_TYPE, nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_scheduled_tasks_type_status", "scheduled_tasks", ["task_type", "status"])

    # ==========================================================================
    # Delete requests
    # ==========================================================================
    op.create_table(
        "delete_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("record_id", sa.Uuid(), nullable=False),
        sa.Column("record_type", sa.String(50), nullable=False),
        sa.Column("record_number", sa.String(50), nullable=True),
        _user_fk("requested_by"),
        sa.Column("requested_by_name", sa.String(255), nullable=True),
        sa.Column("requested_by_email", sa.String(255), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        _user_fk("reviewed_by"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("action_type", sa.String(20), nullable=False, server_default="standard"),
        sa.Column("dependencies_summary", JSON_TYPE, nullable=True),
        sa.Column("user_consent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_delete_requests_record", "delete_requests", ["record_id", "record_type"])
    op.create_index("idx_delete_requests_status_created", "delete_requests", ["status", "created_at"])
    op.create_index(
        "uq_delete_requests_pending_record",
        "delete_requests",
        ["record_id", "record_type"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    # ==========================================================================
    # Transfer requests
    # ==========================================================================
    op.create_table(
        "transfer_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("record_type", sa.String(50), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column("target_id", sa.Uuid(), nullable=False),
        sa.Column("source_record_number", sa.String(50), nullable=True),
        sa.Column("target_record_number", sa.String(50), nullable=True),
        _user_fk("requested_by"),
        sa.Column("requested_by_name", sa.String(255), nullable=True),
        sa.Column("requested_by_email", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        _user_fk("approved_by"),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("source_id != target_id", name="chk_transfer_different_records"),
    )
    op.create_index("idx_transfer_requests_source", "transfer_requests", ["record_type", "source_id"])
    op.create_index("idx_transfer_requests_target", "transfer_requests", ["record_type", "target_id"])
    op.create_index("idx_transfer_requests_status", "transfer_requests", ["status"])


def downgrade() -> None:
    for table in (
        "transfer_requests",
        "delete_requests",
        "scheduled_tasks",
        "documents",
        "record_history",
        "notes",
        "tasks",
        "placements",
        "job_seekers",
        "leads",
        "jobs",
        "hiring_managers",
        "organizations",
        "module_sequences",
        "reusable_numbers",
        "users",
    ):
        op.drop_table(table)
