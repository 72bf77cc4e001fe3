from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ElementType = Literal["character", "location", "prop", "atmosphere"]
ConsistencyScore = Literal["excellent", "good", "review"]


class ProjectInfo(BaseModel):
    title: str
    client: str = ""
    schema_version: str = "1.0"
    production_workflow: str = ""
    extraction_date: Optional[str] = None


class ColorPalette(BaseModel):
    primary: str
    secondary: str
    accent: Optional[str] = None
    character_tones: str


class RenderingStyle(BaseModel):
    level: str
    line_work: str
    shading: str
    detail_level: str


class Composition(BaseModel):
    framing: str
    depth: str
    camera_style: str
    aspect_ratio: str


class MoodStyle(BaseModel):
    overall_mood: str
    lighting_description: str
    atmosphere: str
    tone: str


class GlobalStyle(BaseModel):
    color_palette: ColorPalette
    rendering_style: RenderingStyle
    composition: Composition
    mood_style: MoodStyle


class ElementInteraction(BaseModel):
    primary_element: str = ""
    secondary_element: str = ""
    interaction_type: str = ""
    description: str = ""


class ExpandableContent(BaseModel):
    locations_text: str
    characters_text: str
    props_text: str
    actions_text: str
    interactions_text: str
    color_primary: str
    color_secondary: str
    line_work: str
    shading: str
    framing: str
    depth: str
    overall_mood: str


class TimelineScene(BaseModel):
    scene_id: int
    title: str
    duration: str
    camera_type: str
    mood: str
    natural_description: str
    dialogue: Optional[str] = None
    action_summary: str
    elements_present: List[str] = Field(default_factory=list)
    element_interactions: List[ElementInteraction] = Field(default_factory=list)
    primary_focus: str = ""
    lighting_approach: str = ""
    composition_approach: str = ""
    expandable_content: ExpandableContent


class TimelineElement(BaseModel):
    id: str
    name: str
    type: ElementType
    subtype: str
    frequency: int
    scenes_present: List[int] = Field(default_factory=list)
    base_description: str = ""
    consistency_rules: List[str] = Field(default_factory=list)
    consistency_score: ConsistencyScore
    icon: str
    color: str


class ColorStep(BaseModel):
    scene_id: int
    primary: str
    secondary: str


class MoodStep(BaseModel):
    scene_id: int
    mood: str
    lighting: str


class CameraStep(BaseModel):
    scene_id: int
    camera_type: str
    composition: str


class StyleProgression(BaseModel):
    color_evolution: List[ColorStep] = Field(default_factory=list)
    mood_evolution: List[MoodStep] = Field(default_factory=list)
    camera_progression: List[CameraStep] = Field(default_factory=list)


class TimelineData(BaseModel):
    project_info: ProjectInfo
    global_style: Optional[GlobalStyle] = None
    scenes: List[TimelineScene] = Field(default_factory=list)
    elements: List[TimelineElement] = Field(default_factory=list)
    style_evolution: StyleProgression = Field(default_factory=StyleProgression)
