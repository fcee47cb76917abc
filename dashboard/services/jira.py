import logging
from typing import Any

import httpx

from dashboard.core.config import settings
from dashboard.core.errors import ConfigurationError
from dashboard.schemas.jira import JiraIssue, JiraIssuesResponse, JiraParent
from dashboard.services.http import build_client, send, shared_client

logger = logging.getLogger(__name__)

JIRA_FIELDS = ",".join([
    "summary",
    "status",
    "created",
    "updated",
    "assignee",
    "reporter",
    "labels",
    "parent",
    "priority",
])


class JiraClient:
    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ConfigurationError("JIRA_BASE_URL is not configured")
        self.base_url = base_url.rstrip("/")
        self._client = build_client(
            self.base_url,
            headers={"Accept": "application/json"},
            auth=(email, api_token),
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    def search(self, jql: str) -> dict[str, Any]:
        r = send(
            self._client, "Jira", "GET", "/rest/api/3/search/jql",
            params={"jql": jql, "fields": JIRA_FIELDS},
        )
        return r.json()

    def fetch_issues(self, jql: str) -> JiraIssuesResponse:
        data = self.search(jql)
        issues = [self.format_issue(issue) for issue in data.get("issues") or []]
        total = data.get("total")
        return JiraIssuesResponse(total=total if total is not None else len(issues), issues=issues)

    def browse_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"

    def format_issue(self, issue: dict[str, Any]) -> JiraIssue:
        fields = issue.get("fields") or {}
        parent = fields.get("parent")
        assignee = fields.get("assignee")
        reporter = fields.get("reporter")
        priority = fields.get("priority")
        return JiraIssue(
            id=str(issue["id"]),
            key=issue["key"],
            url=self.browse_url(issue["key"]),
            summary=fields.get("summary") or "",
            status=(fields.get("status") or {}).get("name", ""),
            created=fields.get("created") or "",
            updated=fields.get("updated") or "",
            parent=JiraParent(
                id=str(parent["id"]),
                key=parent["key"],
                url=self.browse_url(parent["key"]),
                summary=(parent.get("fields") or {}).get("summary"),
            ) if parent else None,
            assignee=assignee["displayName"] if assignee else "Unassigned",
            reporter=reporter["displayName"] if reporter else "Unknown",
            labels=fields.get("labels") or [],
            priority=priority["name"] if priority else "None",
        )

    def close(self) -> None:
        self._client.close()



def get_jira_client() -> JiraClient:
    config = (settings.JIRA_BASE_URL, settings.JIRA_EMAIL, settings.JIRA_API_TOKEN)
    return shared_client("jira", config, lambda: JiraClient(*config))


def get_manual_qa_issues(client: JiraClient) -> JiraIssuesResponse:
    return client.fetch_issues(settings.JIRA_MANUAL_QA_JQL)


def get_my_tickets(client: JiraClient) -> JiraIssuesResponse:
    return client.fetch_issues(settings.JIRA_MY_TICKETS_JQL)
