"""Hiring manager links on jobs and tasks, unarchive requests

Revision ID: 0002_hm_links_unarchive
Revises: 0001_baseline
Create Date: 2026-10-19

Jobs and tasks can point at a hiring manager so a hiring manager transfer
has something to move. Unarchive requests let reviewers restore an archived
record before the sweep removes it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_hm_links_unarchive'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

HM_LINKED_TABLES = ("jobs", "tasks")


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    for table in HM_LINKED_TABLES:
        op.add_column(table, sa.Column("hiring_manager_id", sa.Uuid(), nullable=True))
        op.create_foreign_key(
            f"fk_{table}_hiring_manager_id",
            table,
            "hiring_managers",
            ["hiring_manager_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "unarchive_requests",
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
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_unarchive_requests_record", "unarchive_requests", ["record_id", "record_type"])
    op.create_index("idx_unarchive_requests_status", "unarchive_requests", ["status"])
    op.create_index(
        "uq_unarchive_requests_pending_record",
        "unarchive_requests",
        ["record_id", "record_type"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    op.drop_table("unarchive_requests")
    for table in HM_LINKED_TABLES:
        op.drop_constraint(f"fk_{table}_hiring_manager_id", table, type_="foreignkey")
        op.drop_column(table, "hiring_manager_id")
