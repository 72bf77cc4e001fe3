from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), index=True)
    name: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, default="active")
    project_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    global_style: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    phases: Mapped[list["ProjectPhase"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectPhase.phase_index",
    )
    jobs: Mapped[list["WorkflowJob"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("status in ('active', 'completed', 'archived')", name="ck_projects_status"),
    )


class ProjectPhase(Base):
    __tablename__ = "project_phases"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
    )
    phase_name: Mapped[str] = mapped_column(Text)
    phase_index: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(Text, default="pending")
    can_proceed: Mapped[bool] = mapped_column(Boolean, default=False)
    current_version: Mapped[int] = mapped_column(Integer, default=0)
    content_data: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    user_saved: Mapped[bool] = mapped_column(Boolean, default=False)
    last_modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    project: Mapped["Project"] = relationship(back_populates="phases")
    versions: Mapped[list["PhaseVersion"]] = relationship(
        back_populates="phase",
        cascade="all, delete-orphan",
        order_by="PhaseVersion.version_number",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "phase_name", name="uq_project_phases_project_phase"),
        CheckConstraint("phase_index >= 1 and phase_index <= 5", name="ck_project_phases_index"),
        CheckConstraint(
            "status in ('pending', 'processing', 'completed', 'locked')",
            name="ck_project_phases_status",
        ),
    )


class PhaseVersion(Base):
    __tablename__ = "phase_versions"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    phase_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project_phases.id", ondelete="CASCADE"),
    )
    version_number: Mapped[int] = mapped_column(Integer)
    content_data: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    change_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    phase: Mapped["ProjectPhase"] = relationship(back_populates="versions")

    __table_args__ = (
        UniqueConstraint("phase_id", "version_number", name="uq_phase_versions_phase_version"),
        CheckConstraint("version_number >= 1", name="ck_phase_versions_version_number"),
    )


class WorkflowJob(Base):
    __tablename__ = "workflow_jobs"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
    )
    phase_name: Mapped[str] = mapped_column(Text)
    workflow_id: Mapped[str] = mapped_column(Text)
    execution_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    input_data: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    output_data: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(Text, default="pending")
    progress_percentage: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    project: Mapped["Project"] = relationship(back_populates="jobs")

    __table_args__ = (
        CheckConstraint(
            "status in ('pending', 'running', 'completed', 'failed')",
            name="ck_workflow_jobs_status",
        ),
    )
