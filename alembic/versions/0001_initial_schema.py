"""Initial snapshot store schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-16
"""

import sqlalchemy as sa

from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("file_path", sa.String(), nullable=False, unique=True),
        sa.Column("current_version_id", sa.Integer(), nullable=True),
    )
    op.create_table(
        "versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "file_id",
            sa.Integer(),
            sa.ForeignKey("files.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("label", sa.Text(), nullable=True),
        sa.UniqueConstraint(
            "file_id", "version_number", name="uq_versions_file_version"
        ),
    )
    op.create_index("idx_versions_file_id", "versions", ["file_id"])
    op.create_index("idx_versions_timestamp", "versions", ["timestamp"])
    op.create_table(
        "repository_commits",
        sa.Column("repo_path", sa.String(), primary_key=True),
        sa.Column("commit_hash", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("repository_commits")
    op.drop_index("idx_versions_timestamp", table_name="versions")
    op.drop_index("idx_versions_file_id", table_name="versions")
    op.drop_table("versions")
    op.drop_table("files")
