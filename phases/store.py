"""Project and phase lifecycle over the relational store.

A project always owns exactly five phases. Content updates bump the phase's
``current_version`` and append an immutable ``PhaseVersion`` row in the same
transaction; the bump is a compare-and-swap on the version that was read, so
two writers racing on one phase cannot both succeed. The tool still assumes a
single editor per phase: the loser of a race gets ``VersionConflictError``
and has to reload.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import delete, desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from db.models import PhaseVersion, Project, ProjectPhase
from db.session import build_engine, build_session_factory

from .config import (
    DEFAULT_GLOBAL_STYLE,
    PHASE_CONFIG,
    PHASE_STATUSES,
    TOTAL_PHASES,
    default_project_metadata,
)
from .errors import (
    PhaseNotFoundError,
    ProjectNotFoundError,
    StoreError,
    StudioError,
    VersionConflictError,
    VersionNotFoundError,
)
from .progress import PhaseProgress, phase_progress

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_DESCRIPTION = "Content updated"


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CreatedProject:
    project: Project
    phases: list[ProjectPhase]


@dataclass(frozen=True)
class ProjectCard:
    project: Project
    progress: PhaseProgress


@dataclass(frozen=True)
class SavedPhase:
    phase: ProjectPhase
    unlocked: ProjectPhase | None


def build_phase_rows(project_id: UUID) -> list[ProjectPhase]:
    return [
        ProjectPhase(
            project_id=project_id,
            phase_name=phase.phase_name,
            phase_index=phase.phase_index,
            status="pending",
            can_proceed=phase.phase_index == 1,
            current_version=0,
            user_saved=False,
        )
        for phase in PHASE_CONFIG
    ]


class PhaseStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, url: str | None = None) -> "PhaseStore":
        return cls(build_session_factory(build_engine(url)))

    def _session(self) -> Session:
        return self.session_factory()

    # projects

    def create_project(
        self,
        name: str,
        user_id: UUID,
        *,
        project_metadata: dict[str, Any] | None = None,
        global_style: dict[str, Any] | None = None,
    ) -> CreatedProject:
        name = (name or "").strip()
        if not name:
            raise ValueError("project name must not be empty")

        session = self._session()
        try:
            project = Project(
                user_id=user_id,
                name=name,
                status="active",
                project_metadata=project_metadata or default_project_metadata(name),
                global_style=global_style or dict(DEFAULT_GLOBAL_STYLE),
            )
            try:
                session.add(project)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("project insert failed name=%r user_id=%s", name, user_id)
                raise StoreError("project_create_failed") from exc

            phases = build_phase_rows(project.id)
            try:
                session.add_all(phases)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("phase insert failed, removing project %s", project.id)
                self._remove_orphan_project(session, project.id)
                raise StoreError("phase_create_failed") from exc

            logger.info("project created id=%s phases=%d", project.id, len(phases))
            return CreatedProject(
                project=project,
                phases=sorted(phases, key=lambda p: p.phase_index),
            )
        finally:
            session.close()

    def _remove_orphan_project(self, session: Session, project_id: UUID) -> None:
        try:
            session.execute(delete(Project).where(Project.id == project_id))
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("could not remove orphaned project %s", project_id)

    def get_project(self, project_id: UUID) -> Project:
        session = self._session()
        try:
            project = session.get(Project, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            return project
        finally:
            session.close()

    def list_user_projects(self, user_id: UUID) -> list[ProjectCard]:
        session = self._session()
        try:
            projects = (
                session.execute(
                    select(Project)
                    .where(Project.user_id == user_id)
                    .options(selectinload(Project.phases))
                    .order_by(desc(Project.created_at))
                )
                .scalars()
                .all()
            )
            return [
                ProjectCard(project=project, progress=phase_progress(project.phases))
                for project in projects
            ]
        finally:
            session.close()

    def delete_project(self, project_id: UUID) -> None:
        session = self._session()
        try:
            project = session.get(Project, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            session.delete(project)
            session.commit()
            logger.info("project deleted id=%s", project_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("project delete failed id=%s", project_id)
            raise StoreError("project_delete_failed") from exc
        finally:
            session.close()

    # phases

    def get_project_phases(self, project_id: UUID) -> list[ProjectPhase]:
        session = self._session()
        try:
            return list(
                session.execute(
                    select(ProjectPhase)
                    .where(ProjectPhase.project_id == project_id)
                    .order_by(ProjectPhase.phase_index)
                )
                .scalars()
                .all()
            )
        finally:
            session.close()

    def get_phase(self, phase_id: UUID) -> ProjectPhase:
        session = self._session()
        try:
            phase = session.get(ProjectPhase, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            return phase
        finally:
            session.close()

    def set_phase_status(self, phase_id: UUID, status: str) -> ProjectPhase:
        if status not in PHASE_STATUSES:
            raise ValueError(f"unsupported phase status: {status}")
        session = self._session()
        try:
            phase = session.get(ProjectPhase, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            phase.status = status
            session.commit()
            return phase
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("phase status update failed id=%s status=%s", phase_id, status)
            raise StoreError("phase_status_failed") from exc
        finally:
            session.close()

    def update_phase_content(
        self,
        phase_id: UUID,
        content: Any,
        description: str | None = None,
        *,
        expected_version: int | None = None,
        created_by: UUID | None = None,
    ) -> PhaseVersion:
        """Replace the live content and append the matching history row.

        Both writes commit together. ``expected_version`` lets a caller that
        loaded the phase earlier insist nothing was saved in between.
        """
        session = self._session()
        try:
            phase = session.get(ProjectPhase, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            current = phase.current_version
            if expected_version is not None and expected_version != current:
                raise VersionConflictError(phase_id, expected_version, current)

            new_version = current + 1
            now = _utc_now()
            values: dict[str, Any] = {
                "content_data": content,
                "current_version": new_version,
                "last_modified_at": now,
                "updated_at": now,
            }
            if phase.status == "processing":
                values["status"] = "pending"

            result = session.execute(
                update(ProjectPhase)
                .where(ProjectPhase.id == phase_id, ProjectPhase.current_version == current)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                session.rollback()
                actual = session.execute(
                    select(ProjectPhase.current_version).where(ProjectPhase.id == phase_id)
                ).scalar_one_or_none()
                raise VersionConflictError(phase_id, current, actual)

            version = PhaseVersion(
                phase_id=phase_id,
                version_number=new_version,
                content_data=content,
                change_description=description or DEFAULT_CHANGE_DESCRIPTION,
                created_by=created_by,
            )
            session.add(version)
            session.commit()
            logger.info("phase content saved phase_id=%s version=%d", phase_id, new_version)
            return version
        except StudioError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("phase content update failed phase_id=%s", phase_id)
            raise StoreError("phase_update_failed") from exc
        finally:
            session.close()

    def save_phase_and_unlock_next(self, phase_id: UUID) -> SavedPhase:
        session = self._session()
        try:
            phase = session.get(ProjectPhase, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            phase.user_saved = True
            phase.status = "completed"

            unlocked = None
            if phase.phase_index < TOTAL_PHASES:
                unlocked = session.execute(
                    select(ProjectPhase).where(
                        ProjectPhase.project_id == phase.project_id,
                        ProjectPhase.phase_index == phase.phase_index + 1,
                    )
                ).scalar_one_or_none()
                if unlocked is not None:
                    unlocked.can_proceed = True
            session.commit()
            logger.info(
                "phase saved phase_id=%s unlocked=%s",
                phase_id,
                unlocked.phase_name if unlocked is not None else None,
            )
            return SavedPhase(phase=phase, unlocked=unlocked)
        except StudioError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("phase save failed phase_id=%s", phase_id)
            raise StoreError("phase_save_failed") from exc
        finally:
            session.close()

    # versions

    def list_versions(self, phase_id: UUID, limit: int = 50, offset: int = 0) -> list[PhaseVersion]:
        session = self._session()
        try:
            return list(
                session.execute(
                    select(PhaseVersion)
                    .where(PhaseVersion.phase_id == phase_id)
                    .order_by(desc(PhaseVersion.version_number))
                    .limit(limit)
                    .offset(offset)
                )
                .scalars()
                .all()
            )
        finally:
            session.close()

    def get_version(self, phase_id: UUID, version_number: int) -> PhaseVersion:
        session = self._session()
        try:
            version = session.execute(
                select(PhaseVersion).where(
                    PhaseVersion.phase_id == phase_id,
                    PhaseVersion.version_number == version_number,
                )
            ).scalar_one_or_none()
            if version is None:
                raise VersionNotFoundError(phase_id, version_number)
            return version
        finally:
            session.close()
