"""create project phase schema

Revision ID: 3a7e1c9b5d20
Revises: 
Create Date: 2026-10-16 09:00:00

Purpose:
- projects owned by a user, each with exactly five ordered phases
- immutable per-phase version history
- audit rows for external workflow invocations

Touched tables / objects:
- projects, project_phases, phase_versions, workflow_jobs
- required extension: pgcrypto (gen_random_uuid)

Operational notes:
- deleting a project cascades to its phases, their versions and its workflow jobs
- phase locking is carried by project_phases.can_proceed, not by status
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "3a7e1c9b5d20"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    op.execute("create extension if not exists pgcrypto;")

    op.create_table(
        "projects",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column("project_metadata", postgresql.JSONB(), nullable=True),
        sa.Column("global_style", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("status in ('active', 'completed', 'archived')", name="ck_projects_status"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])
    op.create_index("ix_projects_user_id_created_at", "projects", ["user_id", sa.text("created_at desc")])

    op.create_table(
        "project_phases",
        _uuid_pk(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("phase_name", sa.Text(), nullable=False),
        sa.Column("phase_index", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("can_proceed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("current_version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("content_data", postgresql.JSONB(), nullable=True),
        sa.Column("user_saved", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("last_modified_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("project_id", "phase_name", name="uq_project_phases_project_phase"),
        sa.CheckConstraint("phase_index >= 1 and phase_index <= 5", name="ck_project_phases_index"),
        sa.CheckConstraint(
            "status in ('pending', 'processing', 'completed', 'locked')",
            name="ck_project_phases_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_phases_project_id_index", "project_phases", ["project_id", "phase_index"])

    op.create_table(
        "phase_versions",
        _uuid_pk(),
        sa.Column("phase_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("content_data", postgresql.JSONB(), nullable=True),
        sa.Column("change_description", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["phase_id"], ["project_phases.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("phase_id", "version_number", name="uq_phase_versions_phase_version"),
        sa.CheckConstraint("version_number >= 1", name="ck_phase_versions_version_number"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "workflow_jobs",
        _uuid_pk(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("phase_name", sa.Text(), nullable=False),
        sa.Column("workflow_id", sa.Text(), nullable=False),
        sa.Column("execution_id", sa.Text(), nullable=True),
        sa.Column("input_data", postgresql.JSONB(), nullable=True),
        sa.Column("output_data", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("progress_percentage", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("started_at", nullable=True),
        _timestamp("completed_at", nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "status in ('pending', 'running', 'completed', 'failed')",
            name="ck_workflow_jobs_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workflow_jobs_project_id_created_at", "workflow_jobs", ["project_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_workflow_jobs_project_id_created_at", table_name="workflow_jobs")
    op.drop_table("workflow_jobs")
    op.drop_table("phase_versions")
    op.drop_index("ix_project_phases_project_id_index", table_name="project_phases")
    op.drop_table("project_phases")
    op.drop_index("ix_projects_user_id_created_at", table_name="projects")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")
