"""Turn script-interpretation content into the timeline view.

The input is whatever the generation workflow produced: a document with
``scenes`` and ``elements`` mappings keyed by ad hoc identifiers, sometimes
wrapped in a one-element array. Every optional field has a default so a
sparse document still renders; only a document that is not an object at all
is rejected by ``parse_timeline``. ``build_timeline`` is the boundary used by
views and never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from phases.content import unwrap_document

from .models import (
    CameraStep,
    ColorPalette,
    ColorStep,
    Composition,
    ElementInteraction,
    ExpandableContent,
    GlobalStyle,
    MoodStep,
    MoodStyle,
    ProjectInfo,
    RenderingStyle,
    StyleProgression,
    TimelineData,
    TimelineElement,
    TimelineScene,
)

logger = logging.getLogger(__name__)

LOADING_TITLE = "Loading..."
PARSING_ERROR_TITLE = "Parsing Error"

ELEMENT_TYPES = ("character", "location", "prop", "atmosphere")

ELEMENT_COLORS = {
    "character": "#3b82f6",
    "location": "#10b981",
    "prop": "#f59e0b",
    "atmosphere": "#8b5cf6",
}
UNKNOWN_ELEMENT_COLOR = "#6b7280"

# first match on the element key wins
ICON_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("samantha", "character"), "\U0001f464"),
    (("children", "group"), "\U0001f476"),
    (("library", "entrance"), "\U0001f3db\ufe0f"),
    (("hologram", "display"), "\U0001f52e"),
    (("backpack", "book"), "\U0001f392"),
    (("lighting", "atmosphere"), "\U0001f4a1"),
)
TYPE_ICONS = {
    "character": "\U0001f464",
    "location": "\U0001f3db\ufe0f",
    "prop": "\U0001f4e6",
    "atmosphere": "\U0001f4a1",
}
DEFAULT_ICON = "\U0001f4e6"

_DIGITS = re.compile(r"(\d+)")


class TimelineParseError(ValueError):
    pass


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any, default: str = "") -> str:
    if not value:
        return default
    return value if isinstance(value, str) else str(value)


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return default


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    out = []
    for item in value:
        number = _int(item, default=-1)
        if number >= 0:
            out.append(number)
    return out


def scene_ordinal(scene_key: str, scene: dict[str, Any]) -> int:
    if "scene_id" in scene:
        number = _int(scene["scene_id"], default=-1)
        if number >= 0:
            return number
    matches = _DIGITS.findall(scene_key)
    return int(matches[-1]) if matches else 0


def consistency_score(frequency: int, rules_count: int) -> str:
    if frequency >= 8 and rules_count >= 3:
        return "excellent"
    if frequency >= 4 and rules_count >= 2:
        return "good"
    return "review"


def element_color(element_type: Any) -> str:
    return ELEMENT_COLORS.get(element_type, UNKNOWN_ELEMENT_COLOR)


def element_icon(element_type: Any, element_key: str) -> str:
    for keywords, icon in ICON_KEYWORDS:
        if any(word in element_key for word in keywords):
            return icon
    return TYPE_ICONS.get(element_type, DEFAULT_ICON)


def map_element_type(element_type: Any) -> str:
    return element_type if element_type in ELEMENT_TYPES else "prop"


def format_element_name(element_key: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in element_key.split("_"))


def scene_title(action_summary: Any, scene_id: int) -> str:
    if not action_summary or not isinstance(action_summary, str):
        return f"Scene {scene_id}"
    return " ".join(word[:1].upper() + word[1:].lower() for word in action_summary.split(" "))


def _project_info(data: dict[str, Any]) -> ProjectInfo:
    meta = _mapping(data.get("project_metadata"))
    extraction_date = meta.get("extraction_date")
    return ProjectInfo(
        title=_text(meta.get("title"), "Untitled Project"),
        client=_text(meta.get("client"), "Unknown Client"),
        schema_version=_text(meta.get("schema_version"), "1.0"),
        production_workflow=_text(meta.get("production_workflow"), "animatic_to_video"),
        extraction_date=_text(extraction_date) if extraction_date else None,
    )


def _global_style(data: dict[str, Any]) -> GlobalStyle:
    style = _mapping(data.get("global_style"))
    palette = _mapping(style.get("color_palette"))
    rendering = _mapping(style.get("rendering_style"))
    composition = _mapping(style.get("composition"))
    mood = _mapping(style.get("mood_style"))
    accent = palette.get("accent")
    return GlobalStyle(
        color_palette=ColorPalette(
            primary=_text(palette.get("primary"), "Deep blue backgrounds"),
            secondary=_text(palette.get("secondary"), "Warm amber lighting"),
            accent=_text(accent) if accent else None,
            character_tones=_text(palette.get("character_tones"), "Natural skin tones"),
        ),
        rendering_style=RenderingStyle(
            level=_text(rendering.get("level"), "cinematic realism"),
            line_work=_text(rendering.get("line_work"), "clean vector-style"),
            shading=_text(rendering.get("shading"), "minimal, flat color zones"),
            detail_level=_text(rendering.get("detail_level"), "photorealistic"),
        ),
        composition=Composition(
            framing=_text(composition.get("framing"), "cinematic storyboard frames"),
            depth=_text(composition.get("depth"), "clear foreground/background separation"),
            camera_style=_text(composition.get("camera_style"), "traditional film language"),
            aspect_ratio=_text(composition.get("aspect_ratio"), "16:9"),
        ),
        mood_style=MoodStyle(
            overall_mood=_text(mood.get("overall_mood"), "educational, inspiring"),
            lighting_description=_text(mood.get("lighting_description"), "natural library lighting"),
            atmosphere=_text(mood.get("atmosphere"), "technological wonder"),
            tone=_text(mood.get("tone"), "professional, accessible"),
        ),
    )


def _interactions(value: Any) -> list[ElementInteraction]:
    if not isinstance(value, list):
        return []
    return [
        ElementInteraction(
            primary_element=_text(item.get("primary_element")),
            secondary_element=_text(item.get("secondary_element")),
            interaction_type=_text(item.get("interaction_type")),
            description=_text(item.get("description")),
        )
        for item in value
        if isinstance(item, dict)
    ]


def _elements_of_type(elements: dict[str, Any], present: list[str], element_type: str) -> str:
    blocks = []
    for key in present:
        element = _mapping(elements.get(key))
        if element.get("element_type") != element_type:
            continue
        rules = "; ".join(_str_list(element.get("consistency_rules")))
        blocks.append(f"{_text(element.get('base_description'))}\nConsistency Rules: {rules}")
    return "\n\n".join(blocks)


def _actions_text(elements: dict[str, Any], present: list[str], scene_id: int) -> str:
    lines = []
    for key in present:
        variants = _mapping(_mapping(elements.get(key)).get("variants_by_scene"))
        variant = _mapping(variants.get(f"scene_{scene_id}"))
        if variant:
            lines.append(f"{key}: {_text(variant.get('action'))} at {_text(variant.get('position'))}")
        else:
            lines.append(f"{key}: positioned in scene")
    return "\n\n".join(lines)


def _sorted_scene_entries(data: dict[str, Any]) -> list[tuple[int, dict[str, Any]]]:
    entries = [
        (scene_ordinal(str(key), scene), scene)
        for key, scene in _mapping(data.get("scenes")).items()
        if isinstance(scene, dict)
    ]
    # sorted() is stable, duplicate ordinals keep document order
    return sorted(entries, key=lambda entry: entry[0])


def _scenes(data: dict[str, Any], style: GlobalStyle) -> list[TimelineScene]:
    elements = _mapping(data.get("elements"))
    scenes = []
    for scene_id, scene in _sorted_scene_entries(data):
        present = _str_list(scene.get("elements_present"))
        interactions = _interactions(scene.get("element_interactions"))
        dialogue = scene.get("dialogue")
        scenes.append(
            TimelineScene(
                scene_id=scene_id,
                title=scene_title(scene.get("action_summary"), scene_id),
                duration=_text(scene.get("duration"), "3 seconds"),
                camera_type=_text(scene.get("camera_type"), "medium shot"),
                mood=_text(scene.get("mood"), "neutral"),
                natural_description=_text(scene.get("natural_description")),
                dialogue=_text(dialogue) if dialogue else None,
                action_summary=_text(scene.get("action_summary"), "Scene action"),
                elements_present=present,
                element_interactions=interactions,
                primary_focus=_text(scene.get("primary_focus")),
                lighting_approach=_text(scene.get("lighting_approach")),
                composition_approach=_text(scene.get("composition_approach")),
                expandable_content=ExpandableContent(
                    locations_text=_elements_of_type(elements, present, "location"),
                    characters_text=_elements_of_type(elements, present, "character"),
                    props_text=_elements_of_type(elements, present, "prop"),
                    actions_text=_actions_text(elements, present, scene_id),
                    interactions_text="\n".join(i.description for i in interactions),
                    color_primary=style.color_palette.primary,
                    color_secondary=style.color_palette.secondary,
                    line_work=style.rendering_style.line_work,
                    shading=style.rendering_style.shading,
                    framing=style.composition.framing,
                    depth=style.composition.depth,
                    overall_mood=style.mood_style.overall_mood,
                ),
            )
        )
    return scenes


def _elements(data: dict[str, Any]) -> list[TimelineElement]:
    out = []
    for key, element in _mapping(data.get("elements")).items():
        element = _mapping(element)
        key = str(key)
        raw_type = element.get("element_type")
        frequency = _int(element.get("frequency"))
        rules = _str_list(element.get("consistency_rules"))
        out.append(
            TimelineElement(
                id=key,
                name=format_element_name(key),
                type=map_element_type(raw_type),
                subtype=_text(element.get("element_subtype"), "secondary"),
                frequency=frequency,
                scenes_present=_int_list(element.get("scenes_present")),
                base_description=_text(element.get("base_description")),
                consistency_rules=rules,
                consistency_score=consistency_score(frequency, len(rules)),
                icon=element_icon(raw_type, key),
                color=element_color(raw_type),
            )
        )
    return out


def _style_progression(data: dict[str, Any]) -> StyleProgression:
    palette = _mapping(_mapping(data.get("global_style")).get("color_palette"))
    primary = _text(palette.get("primary"), "Deep blue")
    secondary = _text(palette.get("secondary"), "Warm amber")
    entries = _sorted_scene_entries(data)
    return StyleProgression(
        color_evolution=[
            ColorStep(scene_id=scene_id, primary=primary, secondary=secondary)
            for scene_id, _ in entries
        ],
        mood_evolution=[
            MoodStep(
                scene_id=scene_id,
                mood=_text(scene.get("mood"), "neutral"),
                lighting=_text(scene.get("lighting_approach"), "natural"),
            )
            for scene_id, scene in entries
        ],
        camera_progression=[
            CameraStep(
                scene_id=scene_id,
                camera_type=_text(scene.get("camera_type"), "medium shot"),
                composition=_text(scene.get("composition_approach"), "standard framing"),
            )
            for scene_id, scene in entries
        ],
    )


def parse_timeline(content: Any) -> TimelineData:
    data = unwrap_document(content)
    if not isinstance(data, dict):
        raise TimelineParseError(f"timeline content must be an object, got {type(data).__name__}")
    style = _global_style(data)
    return TimelineData(
        project_info=_project_info(data),
        global_style=style,
        scenes=_scenes(data, style),
        elements=_elements(data),
        style_evolution=_style_progression(data),
    )


def placeholder_timeline(title: str) -> TimelineData:
    return TimelineData(
        project_info=ProjectInfo(title=title),
        global_style=None,
        scenes=[],
        elements=[],
        style_evolution=StyleProgression(),
    )


def build_timeline(content: Any) -> TimelineData:
    if not content:
        return placeholder_timeline(LOADING_TITLE)
    try:
        return parse_timeline(content)
    except Exception:
        logger.exception("timeline content could not be parsed")
        return placeholder_timeline(PARSING_ERROR_TITLE)
