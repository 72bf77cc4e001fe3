#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from uuid import UUID

from phases.config import phase_display_name
from phases.progress import phase_progress
from phases.store import PhaseStore


def main() -> None:
    parser = ArgumentParser(description="Show phase states for a project or all projects of a user")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--project-id", type=UUID)
    group.add_argument("--user-id", type=UUID)
    parser.add_argument("--versions", type=int, default=0, help="Also list the N latest versions per phase")
    args = parser.parse_args()

    store = PhaseStore.from_url()
    if args.user_id:
        for card in store.list_user_projects(args.user_id):
            progress = card.progress
            print(
                f"[project] id={card.project.id} name={card.project.name} "
                f"completed={progress.completed_phases}/{progress.total_phases} "
                f"current={progress.current_phase}"
            )
        return

    project = store.get_project(args.project_id)
    phases = store.get_project_phases(project.id)
    progress = phase_progress(phases)
    print(
        f"[project] id={project.id} name={project.name} status={project.status} "
        f"completed={progress.completed_phases}/{progress.total_phases}"
    )
    for phase in phases:
        print(
            f"[phase] {phase.phase_index} {phase_display_name(phase.phase_name)} "
            f"status={phase.status} can_proceed={phase.can_proceed} "
            f"saved={phase.user_saved} version={phase.current_version}"
        )
        if args.versions > 0:
            for version in store.list_versions(phase.id, limit=args.versions):
                print(
                    f"[version]   v{version.version_number} {version.created_at:%Y-%m-%d %H:%M} "
                    f"{version.change_description}"
                )


if __name__ == "__main__":
    main()
