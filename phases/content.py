from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
import yaml

from .config import PHASE_NAMES
from .errors import ContentValidationError


class VariantEntry(BaseModel):
    action: Optional[str] = None
    position: Optional[str] = None
    expression: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ElementEntry(BaseModel):
    element_type: Optional[str] = None
    element_subtype: Optional[str] = None
    frequency: int = 0
    scenes_present: List[int] = Field(default_factory=list)
    base_description: Optional[str] = None
    consistency_rules: List[str] = Field(default_factory=list)
    variants_by_scene: Optional[Dict[str, VariantEntry]] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def _validate_frequency(self) -> "ElementEntry":
        if self.frequency < 0:
            raise ValueError("elements.frequency must be >= 0")
        return self


class InteractionEntry(BaseModel):
    primary_element: Optional[str] = None
    secondary_element: Optional[str] = None
    interaction_type: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SceneEntry(BaseModel):
    scene_id: Optional[int] = None
    duration: Optional[str] = None
    camera_type: Optional[str] = None
    mood: Optional[str] = None
    natural_description: Optional[str] = None
    dialogue: Optional[str] = None
    action_summary: Optional[str] = None
    elements_present: List[str] = Field(default_factory=list)
    element_interactions: List[InteractionEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class ScriptInterpretationContent(BaseModel):
    scenes: Dict[str, SceneEntry] = Field(default_factory=dict)
    elements: Dict[str, ElementEntry] = Field(default_factory=dict)
    project_metadata: Optional[Dict[str, Any]] = None
    global_style: Optional[Dict[str, Any]] = None
    extraction_metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class ImageMetadata(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    generation_time: Optional[str] = None
    model_used: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class GeneratedImage(BaseModel):
    element_key: str
    element_name: Optional[str] = None
    image_url: str
    prompt_used: Optional[str] = None
    approved: bool = False
    metadata: Optional[ImageMetadata] = None

    model_config = ConfigDict(extra="allow")


class ElementImagesContent(BaseModel):
    generated_images: List[GeneratedImage] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class GeneratedScene(BaseModel):
    scene_id: int
    scene_name: Optional[str] = None
    image_url: str
    prompt_used: Optional[str] = None
    approved: bool = False
    character_consistency_score: Optional[float] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class SceneGenerationContent(BaseModel):
    generated_scenes: List[GeneratedScene] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class GeneratedVideo(BaseModel):
    scene_id: int
    video_url: str
    duration: Optional[float] = None
    approved: bool = False
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


class SceneVideosContent(BaseModel):
    generated_videos: List[GeneratedVideo] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class FinalAssemblyContent(BaseModel):
    final_video_url: Optional[str] = None
    total_duration: Optional[float] = None
    scenes_included: List[int] = Field(default_factory=list)
    export_formats: List[str] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")


CONTENT_MODELS: Dict[str, Type[BaseModel]] = {
    "script_interpretation": ScriptInterpretationContent,
    "element_images": ElementImagesContent,
    "scene_generation": SceneGenerationContent,
    "scene_videos": SceneVideosContent,
    "final_assembly": FinalAssemblyContent,
}


def unwrap_document(content: Any) -> Any:
    """Generation workflows answer with the document wrapped in a one-element array."""
    if isinstance(content, list) and len(content) == 1:
        return content[0]
    return content


def parse_content_text(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContentValidationError(f"invalid_json: {exc.msg} (line {exc.lineno})") from exc


def validate_phase_content(phase_name: str, content: Any) -> BaseModel:
    """Check content against the schema of its phase.

    The content itself is stored verbatim; the returned model is only the
    parsed view used for the check.
    """
    if phase_name not in PHASE_NAMES:
        raise ContentValidationError(f"unknown phase: {phase_name}")
    document = unwrap_document(content)
    if not isinstance(document, dict):
        raise ContentValidationError(f"{phase_name} content must be an object")
    model = CONTENT_MODELS[phase_name]
    try:
        return model.model_validate(document)
    except ValidationError as exc:
        raise ContentValidationError(str(exc)) from exc


def load_content_file(path: Path) -> Any:
    """Read phase content from a .json or .yaml/.yml file."""
    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        if suffix == ".json":
            return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ContentValidationError(f"invalid content file {path}: {exc}") from exc
    raise ValueError("content file must be .json/.yaml/.yml")
