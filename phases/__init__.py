from .config import PHASE_CONFIG, PHASE_NAMES, TOTAL_PHASES, next_phase_name, phase_display_name
from .store import CreatedProject, PhaseStore

__all__ = [
    "PHASE_CONFIG",
    "PHASE_NAMES",
    "TOTAL_PHASES",
    "CreatedProject",
    "PhaseStore",
    "next_phase_name",
    "phase_display_name",
]
