"""users, notebooks, pages, collaborators

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    op.create_table(
        "notebooks",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(200), nullable=False, server_default=""),
        sa.Column("owner_id", sa.UUID(as_uuid=True), sa.ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_notebooks_owner_id"), "notebooks", ["owner_id"])

    op.create_table(
        "pages",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("notebook_id", sa.UUID(as_uuid=True), sa.ForeignKey("notebooks.uuid", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", sa.UUID(as_uuid=True), sa.ForeignKey("pages.uuid", ondelete="CASCADE"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_pages_notebook_id"), "pages", ["notebook_id"])

    op.create_table(
        "collaborators",
        sa.Column("uuid", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("notebook_id", sa.UUID(as_uuid=True), sa.ForeignKey("notebooks.uuid", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.UUID(as_uuid=True), sa.ForeignKey("users.uuid", ondelete="CASCADE"), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("username", sa.String(100), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("notebook_id", "user_id", name="uq_collaborators_notebook_user"),
    )
    op.create_index(op.f("ix_collaborators_notebook_id"), "collaborators", ["notebook_id"])
    op.create_index(op.f("ix_collaborators_user_id"), "collaborators", ["user_id"])
    op.create_index(op.f("ix_collaborators_email"), "collaborators", ["email"])


def downgrade() -> None:
    op.drop_table("collaborators")
    op.drop_table("pages")
    op.drop_table("notebooks")
    op.drop_table("users")
