from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from http.client import HTTPException as HTTPClientError
import json
import os
from typing import Any
from urllib import request as urlrequest
from urllib.error import HTTPError, URLError
from uuid import UUID


class WebhookError(RuntimeError):
    pass


@dataclass(frozen=True)
class WebhookConfig:
    production_url: str
    test_url: str
    use_production: bool
    timeout_s: float
    workflow_id: str

    @property
    def url(self) -> str:
        return self.production_url if self.use_production else self.test_url


def load_webhook_config() -> WebhookConfig:
    production_url = os.getenv("GENERATION_WEBHOOK_URL", "").strip()
    test_url = os.getenv("GENERATION_WEBHOOK_TEST_URL", "").strip() or production_url
    env = os.getenv("GENERATION_WEBHOOK_ENV", "production").strip().lower()
    timeout_s = float(os.getenv("GENERATION_WEBHOOK_TIMEOUT_S", "300"))
    workflow_id = os.getenv("GENERATION_WORKFLOW_ID", "script_interpretation_hub").strip()
    return WebhookConfig(
        production_url=production_url,
        test_url=test_url,
        use_production=env != "test",
        timeout_s=timeout_s,
        workflow_id=workflow_id,
    )


def build_webhook_payload(
    *,
    phase: str,
    operation: str,
    job_id: UUID,
    project_id: UUID,
    project_name: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    timestamp = (now or datetime.now(UTC)).isoformat()
    return {
        "phase": phase,
        "operation": operation,
        "jobId": str(job_id),
        "projectId": str(project_id),
        "projectName": project_name,
        "data": {
            "projectId": str(project_id),
            "projectName": project_name,
            "phase": phase,
            "timestamp": timestamp,
        },
    }


class WebhookClient:
    def __init__(self, config: WebhookConfig) -> None:
        self.config = config

    @property
    def workflow_id(self) -> str:
        return self.config.workflow_id

    def call(self, payload: dict[str, Any]) -> Any:
        url = self.config.url
        if not url:
            raise WebhookError("GENERATION_WEBHOOK_URL is not set")
        req = urlrequest.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urlrequest.urlopen(req, timeout=self.config.timeout_s) as resp:
                raw = resp.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise WebhookError(f"Webhook failed: {exc.code} {detail}") from exc
        except TimeoutError as exc:
            raise WebhookError(f"Webhook timed out after {self.config.timeout_s}s") from exc
        except URLError as exc:
            raise WebhookError(f"Webhook unreachable: {exc}") from exc
        except (OSError, HTTPClientError) as exc:
            raise WebhookError(f"Webhook connection failed: {exc!r}") from exc
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise WebhookError("Webhook response is not JSON") from exc
