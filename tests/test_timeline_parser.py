from __future__ import annotations

import pytest

from timeline.parser import (
    LOADING_TITLE,
    PARSING_ERROR_TITLE,
    TimelineParseError,
    build_timeline,
    consistency_score,
    element_color,
    element_icon,
    format_element_name,
    map_element_type,
    parse_timeline,
    scene_ordinal,
)


def test_scenes_are_ordered_by_scene_id(script_content: dict) -> None:
    data = parse_timeline(script_content)

    assert [scene.scene_id for scene in data.scenes] == [1, 2, 3]
    assert data.project_info.title == "Library of Tomorrow"
    assert data.project_info.client == "City Library"


def test_scene_ordinal_falls_back_to_key_digits() -> None:
    assert scene_ordinal("scene_7", {}) == 7
    assert scene_ordinal("act_2_scene_12", {}) == 12
    assert scene_ordinal("opening", {}) == 0
    assert scene_ordinal("scene_7", {"scene_id": 4}) == 4


def test_keys_without_scene_id_sort_numerically() -> None:
    data = parse_timeline({"scenes": {"opening_10": {}, "scene_2": {}}, "elements": {}})

    assert [scene.scene_id for scene in data.scenes] == [2, 10]


def test_scene_defaults(script_content: dict) -> None:
    scene = parse_timeline(script_content).scenes[1]

    assert scene.title == "Scene 2"
    assert scene.duration == "3 seconds"
    assert scene.mood == "neutral"
    assert scene.action_summary == "Scene action"
    assert scene.dialogue is None


def test_scene_title_is_title_cased_summary(script_content: dict) -> None:
    scene = parse_timeline(script_content).scenes[2]

    assert scene.title == "Samantha Smiles At The Children"


@pytest.mark.parametrize(
    ("frequency", "rules", "expected"),
    [
        (8, 3, "excellent"),
        (12, 5, "excellent"),
        (7, 3, "good"),
        (8, 2, "good"),
        (4, 2, "good"),
        (3, 5, "review"),
        (4, 1, "review"),
        (0, 0, "review"),
    ],
)
def test_consistency_score_thresholds(frequency: int, rules: int, expected: str) -> None:
    assert consistency_score(frequency, rules) == expected


def test_elements_carry_score_color_and_icon(script_content: dict) -> None:
    elements = {element.id: element for element in parse_timeline(script_content).elements}

    samantha = elements["samantha"]
    assert samantha.name == "Samantha"
    assert samantha.type == "character"
    assert samantha.consistency_score == "excellent"
    assert samantha.color == "#3b82f6"
    assert samantha.icon == "\U0001f464"

    assert elements["children_group"].consistency_score == "good"
    assert elements["children_group"].icon == "\U0001f476"
    assert elements["children_group"].name == "Children Group"

    entrance = elements["library_entrance"]
    assert entrance.consistency_score == "review"
    assert entrance.color == "#10b981"
    assert entrance.icon == "\U0001f3db\ufe0f"


def test_unknown_element_type_is_mapped_to_prop(script_content: dict) -> None:
    elements = {element.id: element for element in parse_timeline(script_content).elements}

    display = elements["hologram_display"]
    assert display.type == "prop"
    assert display.color == "#6b7280"
    assert display.subtype == "secondary"
    assert display.icon == "\U0001f52e"


def test_element_helpers() -> None:
    assert map_element_type("atmosphere") == "atmosphere"
    assert map_element_type(None) == "prop"
    assert element_color("prop") == "#f59e0b"
    assert element_color("atmosphere") == "#8b5cf6"
    assert element_icon("prop", "red_backpack") == "\U0001f392"
    assert element_icon("atmosphere", "fog") == "\U0001f4a1"
    assert format_element_name("main_hall") == "Main Hall"


def test_expandable_content(script_content: dict) -> None:
    scenes = parse_timeline(script_content).scenes

    second = scenes[1].expandable_content
    assert second.characters_text == (
        "Librarian in a blue uniform\nConsistency Rules: blue uniform; short hair; glasses"
    )
    assert second.props_text == ""
    assert second.actions_text == (
        "samantha: points at display at left third\n\nhologram_display: positioned in scene"
    )
    assert second.color_primary == "Deep blue"
    assert second.line_work == "clean outlines"

    third = scenes[2]
    assert third.expandable_content.interactions_text == "Samantha waves to the children"
    assert third.element_interactions[0].interaction_type == "greeting"

    first = scenes[0].expandable_content
    assert first.locations_text.startswith("Glass entrance with brass doors")


def test_style_progression_follows_scene_order(script_content: dict) -> None:
    progression = parse_timeline(script_content).style_evolution

    assert [step.scene_id for step in progression.color_evolution] == [1, 2, 3]
    assert progression.color_evolution[0].secondary == "Golden amber"
    assert progression.mood_evolution[0].lighting == "dawn light"
    assert progression.mood_evolution[1].lighting == "natural"
    assert [step.camera_type for step in progression.camera_progression] == ["wide", "medium", "close"]


def test_global_style_defaults_fill_missing_fields(script_content: dict) -> None:
    style = parse_timeline(script_content).global_style

    assert style is not None
    assert style.color_palette.primary == "Deep blue"
    assert style.composition.aspect_ratio == "16:9"
    assert style.mood_style.tone == "professional, accessible"


def test_wrapped_document_is_unwrapped(script_content: dict) -> None:
    data = parse_timeline([script_content])

    assert len(data.scenes) == 3
    assert len(data.elements) == 4


def test_malformed_scenes_give_empty_timeline() -> None:
    data = parse_timeline({"scenes": "not a mapping", "elements": {}})

    assert data.scenes == []
    assert data.style_evolution.color_evolution == []


def test_parse_rejects_non_object() -> None:
    with pytest.raises(TimelineParseError):
        parse_timeline(42)


def test_build_timeline_placeholders() -> None:
    assert build_timeline(None).project_info.title == LOADING_TITLE
    assert build_timeline({}).project_info.title == LOADING_TITLE
    assert build_timeline("plain text").project_info.title == PARSING_ERROR_TITLE
    assert build_timeline([1, 2]).project_info.title == PARSING_ERROR_TITLE
    assert build_timeline("plain text").scenes == []
    assert build_timeline(None).global_style is None


def test_zero_scenes_and_elements_give_empty_lists() -> None:
    content = {"project_metadata": {"title": "Blank"}, "scenes": {}, "elements": {}}

    for data in (parse_timeline(content), build_timeline(content)):
        assert data.scenes == []
        assert data.elements == []
        assert data.style_evolution.color_evolution == []
        assert data.style_evolution.mood_evolution == []
        assert data.style_evolution.camera_progression == []
        assert data.project_info.title == "Blank"
        assert data.global_style is not None

    bare = parse_timeline({"scenes": {}, "elements": {}})
    assert bare.project_info.title == "Untitled Project"
    assert bare.scenes == [] and bare.elements == []


def test_icon_keywords_match_case_sensitively() -> None:
    assert element_icon("prop", "hologram_panel") == "\U0001f52e"
    assert element_icon("prop", "Hologram_Panel") == "\U0001f4e6"
