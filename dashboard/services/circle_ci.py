import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from dashboard.core.config import settings
from dashboard.core.errors import ConfigurationError, ValidationFailed
from dashboard.services.http import build_client, send, shared_client

logger = logging.getLogger(__name__)

# Workflow statuses after which a new manual run may start
TERMINAL_WORKFLOW_STATUSES = frozenset({
    "success",
    "failed",
    "error",
    "canceled",
    "unauthorized",
    "not_run",
})


@dataclass(frozen=True)
class Pipeline:
    id: str
    number: int | None
    state: str | None
    created_at: str | None


@dataclass(frozen=True)
class Workflow:
    id: str
    pipeline_id: str
    name: str
    project_slug: str
    status: str
    pipeline_number: int
    created_at: str
    stopped_at: str | None = None


def is_in_progress(status: str) -> bool:
    return status not in TERMINAL_WORKFLOW_STATUSES


class CircleCIClient:
    """Triggers pipelines and reads workflow status from the CircleCI v2 API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        project_path: str,
        *,
        app_url: str = "https://app.circleci.com",
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url or not token:
            raise ConfigurationError("CIRCLE_CI_BASE_URL and CIRCLE_CI_TOKEN must be configured")
        self.project_path = project_path
        self.app_url = app_url.rstrip("/")
        self._client = build_client(
            base_url,
            headers={"circle-token": token},
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    def trigger_pipeline(self, request_body_json: str) -> Pipeline:
        if not self.project_path:
            raise ConfigurationError("CIRCLE_CI_PROJECT_PATH is not configured")
        try:
            json.loads(request_body_json)
        except json.JSONDecodeError:
            raise ValidationFailed("Invalid JSON format in e2e trigger configuration")

        logger.info("Triggering CircleCI pipeline for %s", self.project_path)
        r = send(
            self._client, "CircleCI", "POST", f"/v2/project/github/{self.project_path}/pipeline",
            content=request_body_json,
            headers={"Content-Type": "application/json"},
        )
        data = r.json()
        pipeline = Pipeline(
            id=data["id"],
            number=data.get("number"),
            state=data.get("state"),
            created_at=data.get("created_at"),
        )
        logger.info("CircleCI pipeline %s triggered (number=%s)", pipeline.id, pipeline.number)
        return pipeline

    def get_pipeline_latest_workflow(self, pipeline_id: str) -> Workflow | None:
        """Most recent workflow of the pipeline, or None when CircleCI has not created one yet."""
        r = send(self._client, "CircleCI", "GET", f"/v2/pipeline/{pipeline_id}/workflow")
        items: list[dict[str, Any]] = r.json().get("items") or []
        if not items:
            return None
        item = items[0]
        return Workflow(
            id=item["id"],
            pipeline_id=item.get("pipeline_id", pipeline_id),
            name=item.get("name", ""),
            project_slug=item.get("project_slug", ""),
            status=item["status"],
            pipeline_number=item.get("pipeline_number", 0),
            created_at=item.get("created_at", ""),
            stopped_at=item.get("stopped_at"),
        )

    def workflow_url(self, workflow: Workflow) -> str:
        return (
            f"{self.app_url}/pipelines/{workflow.project_slug}"
            f"/{workflow.pipeline_number}/workflows/{workflow.id}"
        )

    def close(self) -> None:
        self._client.close()



def get_circle_ci_client() -> CircleCIClient:
    config = (
        settings.CIRCLE_CI_BASE_URL,
        settings.CIRCLE_CI_TOKEN,
        settings.CIRCLE_CI_PROJECT_PATH,
        settings.CIRCLE_CI_APP_URL,
    )
    base_url, token, project_path, app_url = config
    return shared_client(
        "circle_ci", config, lambda: CircleCIClient(base_url, token, project_path, app_url=app_url)
    )


def get_optional_circle_ci_client() -> CircleCIClient | None:
    """CircleCI client, or None when CircleCI is not configured."""
    try:
        return get_circle_ci_client()
    except ConfigurationError as e:
        logger.warning("CircleCI unavailable: %s", e)
        return None
