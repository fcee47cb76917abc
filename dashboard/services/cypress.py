import logging
from datetime import date
from typing import Any

import httpx

from dashboard.core.config import settings
from dashboard.core.errors import ConfigurationError
from dashboard.services.http import build_client, send, shared_client

logger = logging.getLogger(__name__)

REPORT_PATH = "/enterprise-reporting/report"
SPEC_DETAILS_REPORT = "spec-details"


class CypressClient:
    """Cypress Cloud enterprise reporting API.

    The report endpoint answers a flat list of rows, one per spec execution,
    each carrying ``project_name``, ``run_number``, ``status`` and
    ``created_at`` among other fields.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("CYPRESS_API_KEY is not configured")
        self.api_key = api_key
        self._client = build_client(base_url, timeout_seconds=timeout_seconds, transport=transport)

    def get_report(
        self,
        report_id: str,
        *,
        projects: list[str] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        branch: str | None = "master",
        export_format: str = "json",
    ) -> Any:
        params: list[tuple[str, str]] = [
            ("report_id", report_id),
            ("token", self.api_key),
            ("export_format", export_format),
            ("start_date", (start_date or date.today()).isoformat()),
        ]
        if end_date:
            params.append(("end_date", end_date.isoformat()))
        if branch:
            params.append(("branch", branch))
        for project in projects or []:
            params.append(("projects", project))

        r = send(self._client, "Cypress", "GET", REPORT_PATH, params=params)
        return r.json()

    def get_daily_runs_per_project(
        self,
        projects: list[str],
        start_date: date,
        end_date: date,
        branch: str | None = "master",
    ) -> list[dict[str, Any]]:
        rows = self.get_report(
            SPEC_DETAILS_REPORT,
            projects=projects,
            start_date=start_date,
            end_date=end_date,
            branch=branch,
        )
        return rows if isinstance(rows, list) else []

    def close(self) -> None:
        self._client.close()



def get_cypress_client() -> CypressClient:
    config = (settings.CYPRESS_BASE_URL, settings.CYPRESS_API_KEY)
    return shared_client("cypress", config, lambda: CypressClient(*config))
