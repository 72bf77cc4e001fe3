from __future__ import annotations

import contextvars
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(project_id)s | %(phase_id)s | %(job_id)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_PROJECT_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_project_id", default=None)
LOG_PHASE_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_phase_id", default=None)
LOG_JOB_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("log_job_id", default=None)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.project_id = LOG_PROJECT_ID.get() or "-"
        record.phase_id = LOG_PHASE_ID.get() or "-"
        record.job_id = LOG_JOB_ID.get() or "-"
        return True


@contextmanager
def log_context(
    project_id: object | None = None,
    phase_id: object | None = None,
    job_id: object | None = None,
) -> Iterator[None]:
    tokens = []
    if project_id is not None:
        tokens.append((LOG_PROJECT_ID, LOG_PROJECT_ID.set(str(project_id))))
    if phase_id is not None:
        tokens.append((LOG_PHASE_ID, LOG_PHASE_ID.set(str(phase_id))))
    if job_id is not None:
        tokens.append((LOG_JOB_ID, LOG_JOB_ID.set(str(job_id))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    log_file: str | None = None,
    level: int | None = None,
    enable_console: bool = True,
    force: bool = False,
) -> logging.Logger:
    root = logging.getLogger()
    if getattr(root, "_flowstudio_logging_configured", False) and not force:
        return root

    if force:
        for handler in list(root.handlers):
            root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    context_filter = ContextFilter()

    log_file = log_file or os.getenv("LOG_FILE") or None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)
    if enable_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(context_filter)
        root.addHandler(stream_handler)

    root.setLevel(level if level is not None else _level_from_env())
    logging.captureWarnings(True)
    root._flowstudio_logging_configured = True
    return root
