#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser
from uuid import UUID

from sqlalchemy import desc, func, select

from db.models import WorkflowJob
from phases.store import PhaseStore


def main() -> None:
    parser = ArgumentParser(description="Show recent workflow job statuses")
    parser.add_argument("--project-id", type=UUID, default=None)
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--summary", action="store_true")
    parser.add_argument("--failed", action="store_true", help="Show failed jobs with error message")
    args = parser.parse_args()

    session = PhaseStore.from_url().session_factory()
    try:
        if args.summary:
            stmt = select(WorkflowJob.status, func.count()).group_by(WorkflowJob.status)
            if args.project_id:
                stmt = stmt.where(WorkflowJob.project_id == args.project_id)
            for status, count in session.execute(stmt).all():
                print(f"[summary] {status}: {count}")
            return
        stmt = select(WorkflowJob)
        if args.project_id:
            stmt = stmt.where(WorkflowJob.project_id == args.project_id)
        if args.failed:
            stmt = stmt.where(WorkflowJob.status == "failed")
        stmt = stmt.order_by(desc(WorkflowJob.created_at)).limit(args.limit)
        for job in session.execute(stmt).scalars().all():
            print(
                f"[job] id={job.id} phase={job.phase_name} workflow={job.workflow_id} "
                f"status={job.status} progress={job.progress_percentage}"
            )
            if args.failed and job.error_message:
                print(f"[job] error={job.error_message}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
