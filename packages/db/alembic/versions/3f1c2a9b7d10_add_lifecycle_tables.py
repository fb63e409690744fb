# This project was developed with assistance from AI tools.
"""add lifecycle tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-17 09:12:41.503118

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1c2a9b7d10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()") if not nullable else None,
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "client_assignments",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("client_user_id", sa.String(36), nullable=False),
        sa.Column("agent_user_id", sa.String(36), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["client_user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["agent_user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_user_id"),
    )
    op.create_index("ix_client_assignments_agent_user_id", "client_assignments", ["agent_user_id"])

    op.create_table(
        "loan_applications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(30), nullable=True, server_default="pending"),
        sa.Column("project_type", sa.String(50), nullable=True),
        sa.Column("has_coborrower", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("rate", sa.Numeric(5, 3), nullable=True),
        sa.Column("monthly_payment", sa.Numeric(12, 2), nullable=True),
        sa.Column("next_action", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("sequestre_status", sa.String(20), nullable=True, server_default="pending"),
        sa.Column("sequestre_amount_expected", sa.Numeric(12, 2), nullable=True),
        sa.Column("sequestre_amount_received", sa.Numeric(12, 2), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loan_applications_user_id", "loan_applications", ["user_id"])
    op.create_index("ix_loan_applications_status", "loan_applications", ["status"])

    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("loan_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=True, server_default="pending"),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("direction", sa.String(20), nullable=True, server_default="outgoing"),
        sa.Column("document_owner", sa.String(20), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _timestamp("validated_at", nullable=True),
        sa.Column("validated_by", sa.String(36), nullable=True),
        _timestamp("uploaded_at"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["loan_id"], ["loan_applications.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_user_id", "documents", ["user_id"])
    op.create_index("ix_documents_loan_id", "documents", ["loan_id"])

    op.create_table(
        "loan_status_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("loan_id", sa.String(36), nullable=False),
        sa.Column("old_status", sa.String(50), nullable=True),
        sa.Column("new_status", sa.String(50), nullable=False),
        sa.Column("changed_by", sa.String(36), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("next_action", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["loan_id"], ["loan_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loan_status_history_loan_id", "loan_status_history", ["loan_id"])

    op.create_table(
        "document_status_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("document_id", sa.String(36), nullable=False),
        sa.Column("old_status", sa.String(50), nullable=True),
        sa.Column("new_status", sa.String(50), nullable=False),
        sa.Column("changed_by", sa.String(36), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_document_status_history_document_id", "document_status_history", ["document_id"]
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_entity", sa.String(50), nullable=True),
        sa.Column("related_id", sa.String(36), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])



def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("document_status_history")
    op.drop_table("loan_status_history")
    op.drop_table("documents")
    op.drop_table("loan_applications")
    op.drop_table("client_assignments")
    op.drop_table("user_roles")
    op.drop_table("profiles")
