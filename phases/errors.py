from __future__ import annotations

from uuid import UUID


class StudioError(Exception):
    pass


class StoreError(StudioError):
    """The relational store rejected or failed an operation."""


class ProjectNotFoundError(StudioError):
    def __init__(self, project_id: UUID) -> None:
        super().__init__(f"project not found: {project_id}")
        self.project_id = project_id


class PhaseNotFoundError(StudioError):
    def __init__(self, phase_id: UUID) -> None:
        super().__init__(f"phase not found: {phase_id}")
        self.phase_id = phase_id


class VersionNotFoundError(StudioError):
    def __init__(self, phase_id: UUID, version_number: int) -> None:
        super().__init__(f"version {version_number} not found for phase {phase_id}")
        self.phase_id = phase_id
        self.version_number = version_number


class VersionConflictError(StudioError):
    def __init__(self, phase_id: UUID, expected: int, actual: int | None) -> None:
        super().__init__(
            f"phase {phase_id} is at version {actual}, expected {expected}"
        )
        self.phase_id = phase_id
        self.expected = expected
        self.actual = actual


class PhaseLockedError(StudioError):
    def __init__(self, phase_id: UUID, phase_name: str) -> None:
        super().__init__(f"phase {phase_name} ({phase_id}) cannot proceed yet")
        self.phase_id = phase_id
        self.phase_name = phase_name


class ContentValidationError(StudioError):
    pass
