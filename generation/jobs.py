"""Audit log of external workflow invocations.

Rows are written as a generation call progresses and are only read back
for display; nothing in the phase lifecycle depends on them.
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.models import WorkflowJob
from phases.errors import StoreError

logger = logging.getLogger(__name__)

JOB_STATUSES = {"pending", "running", "completed", "failed"}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _update_job(
    session: Session,
    job_id: UUID,
    status: str,
    output_data: Any | None = None,
    error_message: str | None = None,
) -> WorkflowJob:
    if status not in JOB_STATUSES:
        raise ValueError(f"unsupported job status: {status}")
    job = session.get(WorkflowJob, job_id)
    if job is None:
        raise StoreError("job_not_found")
    job.status = status
    if status == "running":
        job.started_at = _utc_now()
    elif status in {"completed", "failed"}:
        job.completed_at = _utc_now()
        if status == "completed":
            job.progress_percentage = 100
    if output_data is not None:
        job.output_data = output_data
    if error_message is not None:
        job.error_message = error_message
    session.add(job)
    return job


class JobLog:
    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def create(
        self,
        *,
        project_id: UUID,
        phase_name: str,
        workflow_id: str,
        input_data: Any,
        job_id: UUID | None = None,
    ) -> WorkflowJob:
        session = self.session_factory()
        try:
            job = WorkflowJob(
                id=job_id or uuid4(),
                project_id=project_id,
                phase_name=phase_name,
                workflow_id=workflow_id,
                input_data=input_data,
                status="pending",
            )
            session.add(job)
            session.commit()
            return job
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("workflow job insert failed project_id=%s", project_id)
            raise StoreError("job_create_failed") from exc
        finally:
            session.close()

    def update_status(
        self,
        job_id: UUID,
        status: str,
        output_data: Any | None = None,
        error_message: str | None = None,
    ) -> WorkflowJob:
        session = self.session_factory()
        try:
            job = _update_job(session, job_id, status, output_data, error_message)
            session.commit()
            return job
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("workflow job update failed job_id=%s status=%s", job_id, status)
            raise StoreError("job_update_failed") from exc
        finally:
            session.close()

    def list_for_project(self, project_id: UUID, limit: int = 50, offset: int = 0) -> list[WorkflowJob]:
        session = self.session_factory()
        try:
            return list(
                session.execute(
                    select(WorkflowJob)
                    .where(WorkflowJob.project_id == project_id)
                    .order_by(desc(WorkflowJob.created_at))
                    .limit(limit)
                    .offset(offset)
                )
                .scalars()
                .all()
            )
        finally:
            session.close()

    def get(self, job_id: UUID) -> WorkflowJob | None:
        session = self.session_factory()
        try:
            return session.get(WorkflowJob, job_id)
        finally:
            session.close()
