#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
import json
from pathlib import Path
from uuid import UUID

from phases.content import load_content_file
from phases.store import PhaseStore
from timeline import build_timeline, timeline_summary


def main() -> None:
    parser = ArgumentParser(description="Print the timeline view of script interpretation content")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--phase-id", type=UUID)
    group.add_argument("--file", type=Path)
    parser.add_argument("--json", action="store_true", help="Dump the full timeline as JSON")
    args = parser.parse_args()

    if args.file:
        content = load_content_file(args.file)
    else:
        content = PhaseStore.from_url().get_phase(args.phase_id).content_data

    data = build_timeline(content)
    if args.json:
        print(json.dumps(data.model_dump(), indent=2, ensure_ascii=False))
        return

    summary = timeline_summary(data)
    print(f"[timeline] title={data.project_info.title}")
    print(
        f"[timeline] scenes={summary['scenes_count']} elements={summary['elements_count']} "
        f"duration={summary['total_duration']}"
    )
    for scene in data.scenes:
        print(
            f"[scene] {scene.scene_id} {scene.duration} {scene.camera_type} "
            f"mood={scene.mood} elements={','.join(scene.elements_present)}"
        )
    for element_type, rows in summary["elements_by_type"].items():
        for row in rows:
            print(
                f"[element] {element_type} {row['name']} freq={row['frequency']} "
                f"usage={row['usage_percentage']}% consistency={row['consistency_score']}"
            )


if __name__ == "__main__":
    main()
