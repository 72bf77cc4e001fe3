from __future__ import annotations

import math
import re
from typing import Iterable

from .models import TimelineData, TimelineElement, TimelineScene

DEFAULT_SCENE_SECONDS = 3

_NON_DIGITS = re.compile(r"[^\d]")


def usage_percentage(frequency: int, total_scenes: int) -> int:
    if total_scenes <= 0:
        return 0
    # half-up, as the dashboard has always displayed it
    return int(math.floor(frequency / total_scenes * 100 + 0.5))


def scene_seconds(duration: str | None) -> int:
    digits = _NON_DIGITS.sub("", duration or "")
    return int(digits) if digits and int(digits) > 0 else DEFAULT_SCENE_SECONDS


def total_duration(scenes: Iterable[TimelineScene]) -> str:
    seconds = sum(scene_seconds(scene.duration) for scene in scenes)
    minutes, remainder = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {remainder}s"
    return f"{seconds}s"


def group_elements_by_type(
    elements: Iterable[TimelineElement], total_scenes: int
) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for element in elements:
        row = element.model_dump()
        row["usage_percentage"] = usage_percentage(element.frequency, total_scenes)
        grouped.setdefault(element.type, []).append(row)
    return grouped


def timeline_summary(data: TimelineData) -> dict:
    total_scenes = len(data.scenes)
    return {
        "total_duration": total_duration(data.scenes),
        "scenes_count": total_scenes,
        "elements_count": len(data.elements),
        "elements_by_type": group_elements_by_type(data.elements, total_scenes),
    }
