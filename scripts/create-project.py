#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from uuid import UUID

from common.logging_setup import configure_logging
from phases.config import phase_display_name
from phases.store import PhaseStore


def main() -> None:
    parser = ArgumentParser(description="Create a project with its five phases")
    parser.add_argument("--name", required=True)
    parser.add_argument("--user-id", required=True, type=UUID)
    args = parser.parse_args()

    configure_logging()
    store = PhaseStore.from_url()
    created = store.create_project(args.name, args.user_id)
    print(f"[project] id={created.project.id} name={created.project.name}")
    for phase in created.phases:
        state = "open" if phase.can_proceed else "locked"
        print(
            f"[phase] {phase.phase_index} {phase_display_name(phase.phase_name)} "
            f"id={phase.id} {state}"
        )


if __name__ == "__main__":
    main()
