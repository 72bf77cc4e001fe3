from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from os import getenv
from typing import Any, List, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from common.logging_setup import configure_logging, log_context
from db.models import PhaseVersion, Project, ProjectPhase, WorkflowJob
from generation import (
    JobLog,
    RegenerationRequiresConfirmation,
    WebhookClient,
    WebhookError,
    generate_phase_content,
    load_webhook_config,
)
from phases.config import phase_display_name
from phases.content import parse_content_text, validate_phase_content
from phases.errors import (
    ContentValidationError,
    PhaseLockedError,
    PhaseNotFoundError,
    ProjectNotFoundError,
    StoreError,
    StudioError,
    VersionConflictError,
    VersionNotFoundError,
)
from phases.progress import PhaseProgress, phase_progress
from phases.store import PhaseStore
from timeline import build_timeline, timeline_summary
from timeline.fields import edit_field

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    raw = getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    store = PhaseStore.from_url()
    app.state.store = store
    app.state.jobs = JobLog(store.session_factory)
    app.state.webhook = WebhookClient(load_webhook_config())
    logger.info("api started")
    yield


app = FastAPI(title="Flow Studio API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _store(request: Request) -> PhaseStore:
    return request.app.state.store


def _jobs(request: Request) -> JobLog:
    return request.app.state.jobs


def _webhook(request: Request) -> WebhookClient:
    return request.app.state.webhook


def _current_user(x_user_id: str | None = Header(default=None)) -> UUID:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="user_required")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="invalid_user")


def _paginate(limit: int, offset: int) -> tuple[int, int]:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    return limit, offset


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ProjectNotFoundError):
        return HTTPException(status_code=404, detail="project_not_found")
    if isinstance(exc, PhaseNotFoundError):
        return HTTPException(status_code=404, detail="phase_not_found")
    if isinstance(exc, VersionNotFoundError):
        return HTTPException(status_code=404, detail="version_not_found")
    if isinstance(exc, PhaseLockedError):
        return HTTPException(status_code=409, detail="phase_locked")
    if isinstance(exc, VersionConflictError):
        return HTTPException(status_code=409, detail="version_conflict")
    if isinstance(exc, RegenerationRequiresConfirmation):
        return HTTPException(status_code=409, detail="regeneration_requires_force")
    if isinstance(exc, ContentValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, WebhookError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=500, detail="internal_error")


def _owned_project(store: PhaseStore, project_id: UUID, user_id: UUID) -> Project:
    try:
        project = store.get_project(project_id)
    except StudioError as exc:
        raise _http_error(exc) from exc
    if project.user_id != user_id:
        raise HTTPException(status_code=404, detail="project_not_found")
    return project


def _owned_phase(store: PhaseStore, phase_id: UUID, user_id: UUID) -> ProjectPhase:
    try:
        phase = store.get_phase(phase_id)
    except StudioError as exc:
        raise _http_error(exc) from exc
    _owned_project(store, phase.project_id, user_id)
    return phase


def _project_row(project: Project, progress: PhaseProgress | None = None) -> dict:
    payload: dict[str, Any] = {
        "id": project.id,
        "user_id": project.user_id,
        "name": project.name,
        "status": project.status,
        "project_metadata": project.project_metadata,
        "global_style": project.global_style,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }
    if progress is not None:
        payload["progress"] = {
            "completed_phases": progress.completed_phases,
            "total_phases": progress.total_phases,
            "current_phase": progress.current_phase,
        }
    return payload


def _phase_row(phase: ProjectPhase, include_content: bool = True) -> dict:
    payload: dict[str, Any] = {
        "id": phase.id,
        "project_id": phase.project_id,
        "phase_name": phase.phase_name,
        "display_name": phase_display_name(phase.phase_name),
        "phase_index": phase.phase_index,
        "status": phase.status,
        "can_proceed": phase.can_proceed,
        "current_version": phase.current_version,
        "user_saved": phase.user_saved,
        "last_modified_at": phase.last_modified_at,
        "created_at": phase.created_at,
        "updated_at": phase.updated_at,
    }
    if include_content:
        payload["content_data"] = phase.content_data
    return payload


def _version_row(version: PhaseVersion, include_content: bool = False) -> dict:
    payload: dict[str, Any] = {
        "id": version.id,
        "phase_id": version.phase_id,
        "version_number": version.version_number,
        "change_description": version.change_description,
        "created_by": version.created_by,
        "created_at": version.created_at,
    }
    if include_content:
        payload["content_data"] = version.content_data
    return payload


def _job_row(job: WorkflowJob) -> dict:
    return {
        "id": job.id,
        "project_id": job.project_id,
        "phase_name": job.phase_name,
        "workflow_id": job.workflow_id,
        "status": job.status,
        "progress_percentage": job.progress_percentage,
        "error_message": job.error_message,
        "input_data": job.input_data,
        "output_data": job.output_data,
        "created_at": job.created_at,
        "started_at": job.started_at,
        "completed_at": job.completed_at,
    }


class CreateProjectRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    project_metadata: Optional[dict] = None
    global_style: Optional[dict] = None


class ContentUpdateRequest(BaseModel):
    content: Any = None
    content_json: Optional[str] = None
    description: Optional[str] = None
    expected_version: Optional[int] = Field(default=None, ge=0)


class FieldEditRequest(BaseModel):
    path: str = Field(min_length=1)
    value: Any = None
    description: Optional[str] = None


class GenerateRequest(BaseModel):
    operation: str = Field(default="generate_all")
    force: bool = Field(default=False)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/projects")
def create_project(
    request: CreateProjectRequest,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=422, detail="project_name_required")
    try:
        created = store.create_project(
            name,
            user_id,
            project_metadata=request.project_metadata,
            global_style=request.global_style,
        )
    except StudioError as exc:
        raise _http_error(exc) from exc
    payload = _project_row(created.project, phase_progress(created.phases))
    payload["phases"] = [_phase_row(phase, include_content=False) for phase in created.phases]
    return jsonable_encoder(payload)


@app.get("/projects")
def list_projects(
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> List[dict]:
    cards = store.list_user_projects(user_id)
    return jsonable_encoder([_project_row(card.project, card.progress) for card in cards])


@app.get("/projects/{project_id}")
def get_project(
    project_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    project = _owned_project(store, project_id, user_id)
    phases = store.get_project_phases(project.id)
    payload = _project_row(project, phase_progress(phases))
    payload["phases"] = [_phase_row(phase, include_content=False) for phase in phases]
    return jsonable_encoder(payload)


@app.delete("/projects/{project_id}")
def delete_project(
    project_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    project = _owned_project(store, project_id, user_id)
    try:
        store.delete_project(project.id)
    except StudioError as exc:
        raise _http_error(exc) from exc
    return jsonable_encoder({"id": project.id, "deleted": True})


@app.get("/projects/{project_id}/phases")
def list_project_phases(
    project_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> List[dict]:
    project = _owned_project(store, project_id, user_id)
    return jsonable_encoder([_phase_row(phase) for phase in store.get_project_phases(project.id)])


@app.get("/projects/{project_id}/jobs")
def list_project_jobs(
    project_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
    jobs: JobLog = Depends(_jobs),
) -> List[dict]:
    project = _owned_project(store, project_id, user_id)
    limit, offset = _paginate(limit, offset)
    rows = jobs.list_for_project(project.id, limit=limit, offset=offset)
    return jsonable_encoder([_job_row(row) for row in rows])


@app.get("/phases/{phase_id}")
def get_phase(
    phase_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    return jsonable_encoder(_phase_row(_owned_phase(store, phase_id, user_id)))


@app.put("/phases/{phase_id}/content")
def update_phase_content(
    phase_id: UUID,
    request: ContentUpdateRequest,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    with log_context(project_id=phase.project_id, phase_id=phase.id):
        try:
            if request.content_json is not None:
                content = parse_content_text(request.content_json)
            elif request.content is not None:
                content = request.content
            else:
                raise HTTPException(status_code=422, detail="content_required")
            validate_phase_content(phase.phase_name, content)
            version = store.update_phase_content(
                phase.id,
                content,
                request.description,
                expected_version=request.expected_version,
                created_by=user_id,
            )
        except StudioError as exc:
            raise _http_error(exc) from exc
    return jsonable_encoder(
        {
            "phase_id": phase.id,
            "current_version": version.version_number,
            "version": _version_row(version),
        }
    )


@app.patch("/phases/{phase_id}/fields")
def edit_phase_field(
    phase_id: UUID,
    request: FieldEditRequest,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    with log_context(project_id=phase.project_id, phase_id=phase.id):
        try:
            content = edit_field(phase.content_data or {}, request.path, request.value)
            validate_phase_content(phase.phase_name, content)
            version = store.update_phase_content(
                phase.id,
                content,
                request.description or f"Updated {request.path}",
                expected_version=phase.current_version,
                created_by=user_id,
            )
        except StudioError as exc:
            raise _http_error(exc) from exc
    return jsonable_encoder(
        {
            "phase_id": phase.id,
            "current_version": version.version_number,
            "content_data": content,
        }
    )


@app.post("/phases/{phase_id}/save")
def save_phase(
    phase_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    with log_context(project_id=phase.project_id, phase_id=phase.id):
        try:
            saved = store.save_phase_and_unlock_next(phase.id)
        except StudioError as exc:
            raise _http_error(exc) from exc
    return jsonable_encoder(
        {
            "phase": _phase_row(saved.phase, include_content=False),
            "unlocked": _phase_row(saved.unlocked, include_content=False) if saved.unlocked else None,
        }
    )


@app.post("/phases/{phase_id}/generate")
def generate_phase(
    phase_id: UUID,
    request: GenerateRequest,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
    jobs: JobLog = Depends(_jobs),
    webhook: WebhookClient = Depends(_webhook),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    try:
        result = generate_phase_content(
            store,
            webhook,
            phase.id,
            operation=request.operation,
            force=request.force,
            jobs=jobs,
        )
    except (StudioError, WebhookError) as exc:
        raise _http_error(exc) from exc
    return jsonable_encoder(
        {
            "job": _job_row(result.job),
            "version": _version_row(result.version),
            "content_data": result.content,
        }
    )


@app.get("/phases/{phase_id}/versions")
def list_phase_versions(
    phase_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> List[dict]:
    phase = _owned_phase(store, phase_id, user_id)
    limit, offset = _paginate(limit, offset)
    rows = store.list_versions(phase.id, limit=limit, offset=offset)
    return jsonable_encoder([_version_row(row) for row in rows])


@app.get("/phases/{phase_id}/versions/{version_number}")
def get_phase_version(
    phase_id: UUID,
    version_number: int,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    try:
        version = store.get_version(phase.id, version_number)
    except StudioError as exc:
        raise _http_error(exc) from exc
    return jsonable_encoder(_version_row(version, include_content=True))


@app.get("/phases/{phase_id}/timeline")
def get_phase_timeline(
    phase_id: UUID,
    user_id: UUID = Depends(_current_user),
    store: PhaseStore = Depends(_store),
) -> dict:
    phase = _owned_phase(store, phase_id, user_id)
    with log_context(project_id=phase.project_id, phase_id=phase.id):
        data = build_timeline(phase.content_data)
    return jsonable_encoder(
        {
            "timeline": data.model_dump(),
            "summary": timeline_summary(data),
        }
    )
