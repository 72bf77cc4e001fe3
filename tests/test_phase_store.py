from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select

import phases.store as store_module
from db.models import PhaseVersion, Project, ProjectPhase
from phases.config import PHASE_NAMES
from phases.errors import (
    PhaseNotFoundError,
    ProjectNotFoundError,
    StoreError,
    VersionConflictError,
    VersionNotFoundError,
)
from phases.store import DEFAULT_CHANGE_DESCRIPTION, PhaseStore


def _phase(store: PhaseStore, project_id, phase_name: str) -> ProjectPhase:
    return next(p for p in store.get_project_phases(project_id) if p.phase_name == phase_name)


def _count(store: PhaseStore, model) -> int:
    session = store.session_factory()
    try:
        return session.execute(select(func.count()).select_from(model)).scalar_one()
    finally:
        session.close()


def test_create_project_creates_five_phases_only_first_open(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)

    phases = store.get_project_phases(created.project.id)
    assert [p.phase_name for p in phases] == list(PHASE_NAMES)
    assert [p.phase_index for p in phases] == [1, 2, 3, 4, 5]
    assert [p.can_proceed for p in phases] == [True, False, False, False, False]
    assert all(p.current_version == 0 for p in phases)
    assert all(p.status == "pending" and not p.user_saved for p in phases)
    assert all(p.content_data is None for p in phases)


def test_create_project_fills_default_metadata_and_style(store: PhaseStore, user_id) -> None:
    created = store.create_project("  Demo  ", user_id)

    project = store.get_project(created.project.id)
    assert project.name == "Demo"
    assert project.status == "active"
    assert project.project_metadata["title"] == "Demo"
    assert project.project_metadata["schema_version"] == "1.0"
    assert "color_palette" in project.global_style


def test_create_project_rejects_blank_name(store: PhaseStore, user_id) -> None:
    with pytest.raises(ValueError):
        store.create_project("   ", user_id)
    assert _count(store, Project) == 0


def test_create_project_removes_project_when_phase_insert_fails(
    monkeypatch, store: PhaseStore, user_id
) -> None:
    original = store_module.build_phase_rows

    def _duplicate_rows(project_id):
        rows = original(project_id)
        rows[1].phase_name = rows[0].phase_name
        return rows

    monkeypatch.setattr(store_module, "build_phase_rows", _duplicate_rows)

    with pytest.raises(StoreError):
        store.create_project("Broken", user_id)

    assert store.list_user_projects(user_id) == []
    assert _count(store, Project) == 0
    assert _count(store, ProjectPhase) == 0


def test_update_content_bumps_version_and_appends_history(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")

    for n in range(1, 4):
        version = store.update_phase_content(phase.id, {"n": n}, f"edit {n}")
        assert version.version_number == n

    current = store.get_phase(phase.id)
    assert current.current_version == 3
    assert current.content_data == {"n": 3}
    assert current.last_modified_at is not None

    versions = store.list_versions(phase.id)
    assert [v.version_number for v in versions] == [3, 2, 1]
    assert [v.content_data for v in versions] == [{"n": 3}, {"n": 2}, {"n": 1}]
    assert store.get_version(phase.id, 2).change_description == "edit 2"


def test_update_content_uses_default_description(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")

    version = store.update_phase_content(phase.id, [{"scenes": {}}])

    assert version.change_description == DEFAULT_CHANGE_DESCRIPTION
    assert store.get_version(phase.id, 1).content_data == [{"scenes": {}}]


def test_update_content_does_not_require_can_proceed(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    locked = _phase(store, created.project.id, "scene_videos")

    version = store.update_phase_content(locked.id, {"generated_videos": []})

    assert version.version_number == 1
    assert store.get_phase(locked.id).can_proceed is False


def test_update_content_rejects_stale_expected_version(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")
    store.update_phase_content(phase.id, {"a": 1}, expected_version=0)

    with pytest.raises(VersionConflictError) as excinfo:
        store.update_phase_content(phase.id, {"a": 2}, expected_version=0)

    assert excinfo.value.actual == 1
    assert store.get_phase(phase.id).current_version == 1
    assert [v.version_number for v in store.list_versions(phase.id)] == [1]


def test_update_content_returns_processing_phase_to_pending(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")
    store.set_phase_status(phase.id, "processing")

    store.update_phase_content(phase.id, {"scenes": {}})

    assert store.get_phase(phase.id).status == "pending"


def test_update_content_unknown_phase(store: PhaseStore) -> None:
    with pytest.raises(PhaseNotFoundError):
        store.update_phase_content(uuid4(), {"a": 1})
    assert _count(store, PhaseVersion) == 0


def test_save_unlocks_only_the_next_phase(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "element_images")

    saved = store.save_phase_and_unlock_next(phase.id)

    assert saved.phase.user_saved is True
    assert saved.phase.status == "completed"
    assert saved.unlocked is not None and saved.unlocked.phase_name == "scene_generation"
    phases = store.get_project_phases(created.project.id)
    assert [p.can_proceed for p in phases] == [True, False, True, False, False]
    assert [p.user_saved for p in phases] == [False, True, False, False, False]
    assert [p.current_version for p in phases] == [0, 0, 0, 0, 0]


def test_save_last_phase_unlocks_nothing(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    last = _phase(store, created.project.id, "final_assembly")

    saved = store.save_phase_and_unlock_next(last.id)

    assert saved.unlocked is None
    phases = store.get_project_phases(created.project.id)
    assert [p.can_proceed for p in phases] == [True, False, False, False, False]
    assert phases[-1].user_saved is True


def test_save_is_idempotent(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    first = _phase(store, created.project.id, "script_interpretation")

    store.save_phase_and_unlock_next(first.id)
    once = [(p.can_proceed, p.user_saved, p.status) for p in store.get_project_phases(created.project.id)]
    store.save_phase_and_unlock_next(first.id)
    twice = [(p.can_proceed, p.user_saved, p.status) for p in store.get_project_phases(created.project.id)]

    assert once == twice


def test_save_unknown_phase(store: PhaseStore) -> None:
    with pytest.raises(PhaseNotFoundError):
        store.save_phase_and_unlock_next(uuid4())


def test_list_user_projects_reports_progress(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    store.create_project("Other owner", uuid4())
    first = _phase(store, created.project.id, "script_interpretation")
    store.save_phase_and_unlock_next(first.id)

    cards = store.list_user_projects(user_id)

    assert len(cards) == 1
    assert cards[0].project.id == created.project.id
    assert cards[0].progress.completed_phases == 1
    assert cards[0].progress.total_phases == 5
    assert cards[0].progress.current_phase == "element_images"


def test_progress_prefers_processing_phase(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    second = _phase(store, created.project.id, "element_images")
    store.set_phase_status(second.id, "processing")

    card = store.list_user_projects(user_id)[0]

    assert card.progress.current_phase == "element_images"


def test_delete_project_cascades(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")
    store.update_phase_content(phase.id, {"a": 1})

    store.delete_project(created.project.id)

    with pytest.raises(ProjectNotFoundError):
        store.get_project(created.project.id)
    assert _count(store, ProjectPhase) == 0
    assert _count(store, PhaseVersion) == 0


def test_get_version_missing(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")

    with pytest.raises(VersionNotFoundError):
        store.get_version(phase.id, 1)


def test_set_phase_status_rejects_unknown_status(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")

    with pytest.raises(ValueError):
        store.set_phase_status(phase.id, "archived")


def test_failed_history_insert_leaves_live_content_unchanged(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")
    session = store.session_factory()
    try:
        session.add(PhaseVersion(phase_id=phase.id, version_number=1, content_data={"stale": True}))
        session.commit()
    finally:
        session.close()

    with pytest.raises(StoreError):
        store.update_phase_content(phase.id, {"fresh": True})

    current = store.get_phase(phase.id)
    assert current.current_version == 0
    assert current.content_data is None
    assert [v.content_data for v in store.list_versions(phase.id)] == [{"stale": True}]


class _InterleavedSession:
    """Session wrapper that runs ``on_get`` right after the first ``get``."""

    def __init__(self, session, on_get) -> None:
        self._session = session
        self._on_get = on_get

    def get(self, *args, **kwargs):
        obj = self._session.get(*args, **kwargs)
        if self._on_get is not None:
            hook, self._on_get = self._on_get, None
            hook()
        return obj

    def __getattr__(self, name):
        return getattr(self._session, name)


def test_concurrent_writer_loses_compare_and_swap(store: PhaseStore, user_id) -> None:
    created = store.create_project("Demo", user_id)
    phase = _phase(store, created.project.id, "script_interpretation")
    pending_hooks = [lambda: store.update_phase_content(phase.id, {"writer": "first"})]

    def _factory():
        hook = pending_hooks.pop() if pending_hooks else None
        return _InterleavedSession(store.session_factory(), hook)

    racing = PhaseStore(_factory)

    with pytest.raises(VersionConflictError) as excinfo:
        racing.update_phase_content(phase.id, {"writer": "second"})

    assert excinfo.value.expected == 0
    assert excinfo.value.actual == 1
    current = store.get_phase(phase.id)
    assert current.current_version == 1
    assert current.content_data == {"writer": "first"}
    assert [v.version_number for v in store.list_versions(phase.id)] == [1]
