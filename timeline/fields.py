"""Dot-path edits on phase content, e.g. ``scenes.scene_1.camera_type``."""

from __future__ import annotations

import re
from typing import Any

from phases.errors import ContentValidationError

CAMERA_TYPES = ("wide", "medium", "close", "extreme_close", "establishing")

_DURATION = re.compile(r"^\d+s$")


class FieldValidationError(ContentValidationError):
    pass


def get_field(content: Any, path: str) -> Any:
    current = content
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def update_field(content: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Return a copy of ``content`` with ``path`` set; the input is left untouched."""
    parts = path.split(".")
    updated = dict(content)
    current = updated
    for part in parts[:-1]:
        child = current.get(part)
        current[part] = dict(child) if isinstance(child, dict) else {}
        current = current[part]
    current[parts[-1]] = value
    return updated


def validate_field(value: Any, path: str) -> bool:
    if "title" in path and isinstance(value, str):
        return len(value.strip()) > 0
    if "duration" in path and isinstance(value, str):
        return bool(_DURATION.match(value))
    if "camera_type" in path and isinstance(value, str):
        return value in CAMERA_TYPES
    return value is not None and value != ""


def edit_field(content: Any, path: str, value: Any) -> Any:
    if isinstance(content, list) and len(content) == 1 and isinstance(content[0], dict):
        return [edit_field(content[0], path, value)]
    if not path or any(not part for part in path.split(".")):
        raise FieldValidationError(f"invalid field path: {path!r}")
    if not isinstance(content, dict):
        raise FieldValidationError("content must be an object to edit fields")
    if isinstance(value, str):
        value = value.strip()
    if not validate_field(value, path):
        raise FieldValidationError(f"invalid value for field {path}")
    return update_field(content, path, value)
