import logging
from typing import Any

import httpx

from dashboard.core.config import settings
from dashboard.schemas.pull_request import PullRequestAuthor, PullRequestDetails, PullRequestLabel
from dashboard.services.http import build_client, send, shared_client

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """Reads pull request details from the GitHub REST API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = build_client(
            base_url, headers=headers, timeout_seconds=timeout_seconds, transport=transport
        )

    def get_pull_request(self, repository: str, number: int) -> dict[str, Any]:
        owner, repo = repository.split("/", 1)
        r = send(self._client, "GitHub", "GET", f"/repos/{owner}/{repo}/pulls/{number}")
        return r.json()

    def get_pull_request_details(self, repository: str, number: int) -> PullRequestDetails:
        return format_pull_request(self.get_pull_request(repository, number))

    def close(self) -> None:
        self._client.close()



def format_pull_request(data: dict[str, Any]) -> PullRequestDetails:
    user = data.get("user") or {}
    return PullRequestDetails(
        id=data["id"],
        number=data["number"],
        title=data["title"],
        state=data["state"],
        is_draft=bool(data.get("draft")),
        url=data["html_url"],
        created_at=data["created_at"],
        updated_at=data["updated_at"],
        closed_at=data.get("closed_at"),
        merged_at=data.get("merged_at"),
        labels=[
            PullRequestLabel(name=label["name"], color=label.get("color"))
            for label in data.get("labels") or []
        ],
        mergeable_state=data.get("mergeable_state"),
        merged=bool(data.get("merged")),
        author=PullRequestAuthor(
            username=user.get("login", "unknown"),
            avatar_url=user.get("avatar_url"),
            html_url=user.get("html_url"),
        ),
    )


def get_github_client() -> GitHubClient:
    config = (settings.GITHUB_URL, settings.GITHUB_TOKEN)
    return shared_client("github", config, lambda: GitHubClient(*config))
