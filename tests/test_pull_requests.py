"""Pull request tracking tests."""
from unittest.mock import MagicMock

import pytest

from dashboard.core.errors import ExternalServiceError
from dashboard.models import PullRequest
from dashboard.services.github import format_pull_request, get_github_client
from dashboard.services.pull_requests import get_all_with_details


def github_payload(number=101, **overrides):
    data = {
        "id": 9000 + number,
        "number": number,
        "title": f"Feature {number}",
        "state": "open",
        "draft": False,
        "html_url": f"https://github.com/acme/web/pull/{number}",
        "created_at": "2025-06-01T10:00:00Z",
        "updated_at": "2025-06-02T10:00:00Z",
        "closed_at": None,
        "merged_at": None,
        "labels": [{"name": "needs-review", "color": "fbca04"}],
        "mergeable_state": "clean",
        "merged": False,
        "user": {"login": "octocat", "avatar_url": "https://avatars/1", "html_url": "https://github.com/octocat"},
    }
    data.update(overrides)
    return data


@pytest.fixture()
def seed_prs(db_session):
    prs = [
        PullRequest(pull_request_number=101, repository="acme/web"),
        PullRequest(pull_request_number=7, repository="acme/api"),
    ]
    db_session.add_all(prs)
    db_session.commit()
    return prs


class TestFormatPullRequest:
    def test_fields(self):
        details = format_pull_request(github_payload())
        assert details.number == 101
        assert details.is_draft is False
        assert details.url == "https://github.com/acme/web/pull/101"
        assert details.labels[0].name == "needs-review"
        assert details.author.username == "octocat"
        assert details.mergeable_state == "clean"

    def test_missing_optional_fields(self):
        data = github_payload()
        data.pop("labels")
        data.pop("mergeable_state")
        data["user"] = None
        details = format_pull_request(data)
        assert details.labels == []
        assert details.mergeable_state is None
        assert details.author.username == "unknown"


class TestPullRequestRoutes:
    def test_add_and_list(self, client, auth_headers):
        r = client.post(
            "/api/pull_requests",
            json={"pull_request_number": 12, "repository": "acme/web"},
            headers=auth_headers,
        )
        assert r.status_code == 201
        r = client.get("/api/pull_requests", headers=auth_headers)
        assert r.status_code == 200
        assert [(p["repository"], p["pull_request_number"]) for p in r.json()] == [("acme/web", 12)]

    def test_duplicate(self, client, seed_prs, auth_headers):
        r = client.post(
            "/api/pull_requests",
            json={"pull_request_number": 101, "repository": "acme/web"},
            headers=auth_headers,
        )
        assert r.status_code == 409

    def test_invalid_repository(self, client, auth_headers):
        r = client.post(
            "/api/pull_requests",
            json={"pull_request_number": 1, "repository": "not-a-repo"},
            headers=auth_headers,
        )
        assert r.status_code == 422

    def test_non_positive_number(self, client, auth_headers):
        r = client.post(
            "/api/pull_requests",
            json={"pull_request_number": 0, "repository": "acme/web"},
            headers=auth_headers,
        )
        assert r.status_code == 422

    def test_details(self, client, seed_prs, auth_headers):
        from dashboard.main import app

        github = MagicMock()
        github.get_pull_request_details.return_value = format_pull_request(github_payload())
        app.dependency_overrides[get_github_client] = lambda: github

        r = client.get(f"/api/pull_requests/{seed_prs[0].id}", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["title"] == "Feature 101"
        github.get_pull_request_details.assert_called_once_with("acme/web", 101)

    def test_details_github_failure(self, client, seed_prs, auth_headers):
        from dashboard.main import app

        github = MagicMock()
        github.get_pull_request_details.side_effect = ExternalServiceError("GitHub", "404 Not Found", 404)
        app.dependency_overrides[get_github_client] = lambda: github

        r = client.get(f"/api/pull_requests/{seed_prs[0].id}", headers=auth_headers)
        assert r.status_code == 502
        assert "GitHub" in r.json()["detail"]

    def test_delete(self, client, seed_prs, auth_headers):
        r = client.delete(f"/api/pull_requests/{seed_prs[1].id}", headers=auth_headers)
        assert r.status_code == 204
        r = client.delete(f"/api/pull_requests/{seed_prs[1].id}", headers=auth_headers)
        assert r.status_code == 404


class TestGetAllWithDetails:
    def test_collects_errors(self, db_session, seed_prs):
        github = MagicMock()

        def fake_details(repository, number):
            if repository == "acme/api":
                raise ExternalServiceError("GitHub", "boom")
            return format_pull_request(github_payload(number))

        github.get_pull_request_details.side_effect = fake_details
        results, errors = get_all_with_details(db_session, github)
        assert [r.details.number for r in results] == [101]
        assert len(errors) == 1
        assert errors[0][0].repository == "acme/api"
