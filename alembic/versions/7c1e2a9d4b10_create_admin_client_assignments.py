"""create admins, clients and admin_client_assignments

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-18 09:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c1e2a9d4b10"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(name: str) -> bool:
    return name in sa.inspect(op.get_bind()).get_table_names()


def upgrade():
    if not _has_table("admins"):
        op.create_table(
            "admins",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="sub_admin"),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.CheckConstraint("role IN ('super_admin', 'sub_admin')", name="ck_admins_role"),
        )
        op.create_index("ix_admins_email", "admins", ["email"], unique=True)
        op.create_index("ix_admins_role", "admins", ["role"])
        op.create_index("uq_admins_email_lower", "admins", [sa.text("lower(email)")], unique=True)

    if not _has_table("clients"):
        op.create_table(
            "clients",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("company", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        )
        op.create_index("ix_clients_email", "clients", ["email"], unique=True)

    if not _has_table("admin_client_assignments"):
        op.create_table(
            "admin_client_assignments",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("admin_id", sa.String(length=36), nullable=False),
            sa.Column("client_user_id", sa.String(length=36), nullable=False),
            sa.Column("assigned_at", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.Column("assigned_by", sa.String(length=36), nullable=True),
            sa.ForeignKeyConstraint(["admin_id"], ["admins.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["client_user_id"], ["clients.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["assigned_by"], ["admins.id"], ondelete="SET NULL"),
            sa.UniqueConstraint("client_user_id", name="uq_assignment_client"),
        )
        op.create_index(
            "ix_admin_client_assignments_admin_id",
            "admin_client_assignments",
            ["admin_id"],
        )


def downgrade():
    if _has_table("admin_client_assignments"):
        op.drop_index("ix_admin_client_assignments_admin_id", table_name="admin_client_assignments")
        op.drop_table("admin_client_assignments")
    if _has_table("clients"):
        op.drop_index("ix_clients_email", table_name="clients")
        op.drop_table("clients")
    if _has_table("admins"):
        op.drop_index("uq_admins_email_lower", table_name="admins")
        op.drop_index("ix_admins_role", table_name="admins")
        op.drop_index("ix_admins_email", table_name="admins")
        op.drop_table("admins")
