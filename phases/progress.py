from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from db.models import ProjectPhase

from .config import TOTAL_PHASES


@dataclass(frozen=True)
class PhaseProgress:
    completed_phases: int
    total_phases: int
    current_phase: str | None


def phase_progress(phases: Iterable[ProjectPhase]) -> PhaseProgress:
    ordered = sorted(phases, key=lambda p: p.phase_index)
    completed = sum(1 for p in ordered if p.user_saved)
    current = next((p.phase_name for p in ordered if p.status == "processing"), None)
    if current is None:
        current = next(
            (p.phase_name for p in ordered if p.can_proceed and not p.user_saved),
            None,
        )
    return PhaseProgress(
        completed_phases=completed,
        total_phases=TOTAL_PHASES,
        current_phase=current,
    )
