from __future__ import annotations

from uuid import uuid4

import pytest

from db.session import build_engine, build_session_factory, init_db
from phases.store import PhaseStore


@pytest.fixture()
def store() -> PhaseStore:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    yield PhaseStore(build_session_factory(engine))
    engine.dispose()


@pytest.fixture()
def user_id():
    return uuid4()


@pytest.fixture()
def script_content() -> dict:
    return {
        "project_metadata": {
            "title": "Library of Tomorrow",
            "client": "City Library",
            "extraction_date": "2026-10-01",
            "schema_version": "1.0",
            "production_workflow": "animatic_to_video_scalable",
        },
        "global_style": {
            "color_palette": {"primary": "Deep blue", "secondary": "Golden amber"},
            "rendering_style": {"line_work": "clean outlines"},
        },
        "scenes": {
            "scene_3": {
                "scene_id": 3,
                "duration": "4s",
                "camera_type": "close",
                "mood": "warm",
                "action_summary": "samantha smiles at the children",
                "elements_present": ["samantha", "children_group"],
                "element_interactions": [
                    {
                        "primary_element": "samantha",
                        "secondary_element": "children_group",
                        "interaction_type": "greeting",
                        "description": "Samantha waves to the children",
                    }
                ],
            },
            "scene_1": {
                "scene_id": 1,
                "duration": "5s",
                "camera_type": "wide",
                "mood": "hopeful",
                "action_summary": "exterior of the library",
                "elements_present": ["library_entrance"],
                "lighting_approach": "dawn light",
            },
            "scene_2": {
                "scene_id": 2,
                "camera_type": "medium",
                "elements_present": ["samantha", "hologram_display"],
            },
        },
        "elements": {
            "samantha": {
                "element_type": "character",
                "element_subtype": "primary",
                "frequency": 8,
                "scenes_present": [2, 3],
                "base_description": "Librarian in a blue uniform",
                "consistency_rules": ["blue uniform", "short hair", "glasses"],
                "variants_by_scene": {
                    "scene_2": {"action": "points at display", "position": "left third"},
                },
            },
            "children_group": {
                "element_type": "character",
                "frequency": 4,
                "scenes_present": [3],
                "base_description": "Three school children",
                "consistency_rules": ["backpacks", "uniforms"],
            },
            "library_entrance": {
                "element_type": "location",
                "frequency": 3,
                "scenes_present": [1],
                "base_description": "Glass entrance with brass doors",
                "consistency_rules": ["brass doors", "glass facade", "stone steps", "banner"],
            },
            "hologram_display": {
                "element_type": "device",
                "frequency": 1,
                "scenes_present": [2],
            },
        },
    }
