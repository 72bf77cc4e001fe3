from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class PhaseDefinition:
    phase_name: str
    phase_index: int
    display_name: str


PHASE_CONFIG: tuple[PhaseDefinition, ...] = (
    PhaseDefinition("script_interpretation", 1, "Script Interpretation"),
    PhaseDefinition("element_images", 2, "Element Images"),
    PhaseDefinition("scene_generation", 3, "Scene Generation"),
    PhaseDefinition("scene_videos", 4, "Scene Videos"),
    PhaseDefinition("final_assembly", 5, "Final Assembly"),
)

PHASE_NAMES = tuple(phase.phase_name for phase in PHASE_CONFIG)
TOTAL_PHASES = len(PHASE_CONFIG)

PROJECT_STATUSES = {"active", "completed", "archived"}
PHASE_STATUSES = {"pending", "processing", "completed", "locked"}

DEFAULT_GLOBAL_STYLE: dict[str, Any] = {
    "color_palette": {
        "primary": "Deep blue backgrounds (library, tech elements)",
        "secondary": "Warm amber/golden lighting",
        "character_tones": "Natural skin tones, blue uniforms",
    },
    "rendering_style": {
        "level": "simplified illustration transitioning to cinematic realism",
        "line_work": "clean vector-style outlines",
        "detail_level": "stylized but scalable to photorealistic",
    },
}


def default_project_metadata(title: str, today: date | None = None) -> dict[str, Any]:
    today = today or date.today()
    return {
        "title": title,
        "client": "Client Name",
        "extraction_date": today.isoformat(),
        "schema_version": "1.0",
        "production_workflow": "animatic_to_video_scalable",
    }


def phase_display_name(phase_name: str) -> str:
    for phase in PHASE_CONFIG:
        if phase.phase_name == phase_name:
            return phase.display_name
    return phase_name


def next_phase_name(phase_name: str) -> str | None:
    if phase_name not in PHASE_NAMES:
        return None
    idx = PHASE_NAMES.index(phase_name)
    if idx + 1 >= len(PHASE_NAMES):
        return None
    return PHASE_NAMES[idx + 1]
