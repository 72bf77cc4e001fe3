#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from pathlib import Path
from uuid import UUID

from common.logging_setup import configure_logging, log_context
from phases.content import load_content_file, validate_phase_content
from phases.store import PhaseStore


def main() -> None:
    parser = ArgumentParser(description="Store a JSON/YAML file as the next version of a phase")
    parser.add_argument("--phase-id", required=True, type=UUID)
    parser.add_argument("--file", required=True, type=Path)
    parser.add_argument("--description", default=None)
    parser.add_argument("--skip-validation", action="store_true")
    parser.add_argument("--save", action="store_true", help="Also save the phase and unlock the next one")
    args = parser.parse_args()

    configure_logging()
    store = PhaseStore.from_url()
    phase = store.get_phase(args.phase_id)
    content = load_content_file(args.file)
    if not args.skip_validation:
        validate_phase_content(phase.phase_name, content)

    with log_context(project_id=phase.project_id, phase_id=phase.id):
        version = store.update_phase_content(
            phase.id,
            content,
            args.description or f"Imported from {args.file.name}",
            expected_version=phase.current_version,
        )
        print(f"[import] phase={phase.phase_name} version={version.version_number}")
        if args.save:
            saved = store.save_phase_and_unlock_next(phase.id)
            unlocked = saved.unlocked.phase_name if saved.unlocked else "-"
            print(f"[import] saved phase={phase.phase_name} unlocked={unlocked}")


if __name__ == "__main__":
    main()
