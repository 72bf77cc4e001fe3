from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any
from uuid import UUID, uuid4

from common.logging_setup import log_context
from db.models import PhaseVersion, WorkflowJob
from phases.content import validate_phase_content
from phases.errors import PhaseLockedError, StudioError
from phases.store import PhaseStore

from .jobs import JobLog
from .webhook import WebhookClient, build_webhook_payload

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "generate_all"


class RegenerationRequiresConfirmation(StudioError):
    def __init__(self, phase_id: UUID, current_version: int) -> None:
        super().__init__(
            f"phase {phase_id} already has content at version {current_version}; pass force to overwrite"
        )
        self.phase_id = phase_id
        self.current_version = current_version


@dataclass(frozen=True)
class GenerationResult:
    job: WorkflowJob
    version: PhaseVersion
    content: Any


def _record_failure(
    store: PhaseStore, jobs: JobLog, phase_id: UUID, job_id: UUID, exc: Exception
) -> None:
    # the original error is re-raised by the caller; cleanup errors are only logged
    try:
        jobs.update_status(job_id, "failed", error_message=str(exc) or type(exc).__name__)
    except StudioError:
        logger.exception("could not mark job failed")
    try:
        store.set_phase_status(phase_id, "pending")
    except StudioError:
        logger.exception("could not reset phase status")


def generate_phase_content(
    store: PhaseStore,
    client: WebhookClient,
    phase_id: UUID,
    *,
    operation: str = DEFAULT_OPERATION,
    force: bool = False,
    jobs: JobLog | None = None,
) -> GenerationResult:
    """Ask the external workflow for a phase's content and save it as a new version.

    The call is synchronous and bounded by the client's timeout. The response
    is checked against the phase's schema and then stored exactly as received.
    """
    phase = store.get_phase(phase_id)
    if not phase.can_proceed:
        raise PhaseLockedError(phase.id, phase.phase_name)
    if phase.current_version > 0 and not force:
        raise RegenerationRequiresConfirmation(phase.id, phase.current_version)
    project = store.get_project(phase.project_id)
    jobs = jobs or JobLog(store.session_factory)

    job_id = uuid4()
    payload = build_webhook_payload(
        phase=phase.phase_name,
        operation=operation,
        job_id=job_id,
        project_id=project.id,
        project_name=project.name,
    )

    with log_context(project_id=project.id, phase_id=phase.id, job_id=job_id):
        jobs.create(
            project_id=project.id,
            phase_name=phase.phase_name,
            workflow_id=client.workflow_id,
            input_data=payload,
            job_id=job_id,
        )
        try:
            jobs.update_status(job_id, "running")
            store.set_phase_status(phase.id, "processing")
            logger.info("generation started operation=%s", operation)
            content = client.call(payload)
            validate_phase_content(phase.phase_name, content)
            version = store.update_phase_content(
                phase.id,
                content,
                f"Generated by {operation}",
                expected_version=phase.current_version,
            )
        except Exception as exc:
            logger.warning("generation failed: %s", exc)
            _record_failure(store, jobs, phase.id, job_id, exc)
            raise

        job = jobs.update_status(job_id, "completed", output_data=content)
        logger.info("generation completed version=%d", version.version_number)
    return GenerationResult(job=job, version=version, content=content)
