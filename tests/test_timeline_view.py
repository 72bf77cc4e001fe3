from __future__ import annotations

from timeline.parser import parse_timeline
from timeline.view import scene_seconds, timeline_summary, total_duration, usage_percentage


def test_usage_percentage_rounds_half_up() -> None:
    assert usage_percentage(1, 3) == 33
    assert usage_percentage(2, 3) == 67
    assert usage_percentage(1, 8) == 13
    assert usage_percentage(3, 3) == 100
    assert usage_percentage(5, 0) == 0


def test_scene_seconds_defaults_to_three() -> None:
    assert scene_seconds("4s") == 4
    assert scene_seconds("12 seconds") == 12
    assert scene_seconds(None) == 3
    assert scene_seconds("") == 3
    assert scene_seconds("0s") == 3


def test_total_duration_formats_minutes(script_content: dict) -> None:
    data = parse_timeline(script_content)
    assert total_duration(data.scenes) == "12s"

    long = parse_timeline(
        {"scenes": {f"scene_{n}": {"duration": "30s"} for n in range(1, 4)}, "elements": {}}
    )
    assert total_duration(long.scenes) == "1m 30s"


def test_timeline_summary_groups_elements(script_content: dict) -> None:
    summary = timeline_summary(parse_timeline(script_content))

    assert summary["scenes_count"] == 3
    assert summary["elements_count"] == 4
    assert sorted(summary["elements_by_type"]) == ["character", "location", "prop"]
    entrance = summary["elements_by_type"]["location"][0]
    assert entrance["id"] == "library_entrance"
    assert entrance["usage_percentage"] == 100
