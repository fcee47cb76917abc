import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dashboard.core.errors import Conflict, DashboardError, NotFound
from dashboard.models.pull_request import PullRequest
from dashboard.schemas.pull_request import PullRequestCreate, PullRequestDetails
from dashboard.services.github import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class PullRequestWithDetails:
    pull_request: PullRequest
    details: PullRequestDetails


def list_pull_requests(db: Session) -> list[PullRequest]:
    query = select(PullRequest).order_by(PullRequest.created_at.desc(), PullRequest.id.desc())
    return list(db.execute(query).scalars().all())


def get_pull_request(db: Session, pr_id: int) -> PullRequest:
    pr = db.get(PullRequest, pr_id)
    if not pr:
        raise NotFound("Pull request not found")
    return pr


def add_pull_request(db: Session, data: PullRequestCreate) -> PullRequest:
    pr = PullRequest(pull_request_number=data.pull_request_number, repository=data.repository)
    db.add(pr)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Pull request {data.repository}#{data.pull_request_number} is already tracked")
    db.refresh(pr)
    return pr


def delete_pull_request(db: Session, pr_id: int) -> None:
    pr = get_pull_request(db, pr_id)
    db.delete(pr)
    db.commit()


def get_details(db: Session, github: GitHubClient, pr_id: int) -> PullRequestDetails:
    pr = get_pull_request(db, pr_id)
    return github.get_pull_request_details(pr.repository, pr.pull_request_number)


def get_all_with_details(
    db: Session, github: GitHubClient
) -> tuple[list[PullRequestWithDetails], list[tuple[PullRequest, str]]]:
    """Fetch GitHub details for every tracked pull request.

    Returns the successful lookups and, separately, the pull requests whose
    lookup failed along with the error message.
    """
    results: list[PullRequestWithDetails] = []
    errors: list[tuple[PullRequest, str]] = []
    for pr in list_pull_requests(db):
        try:
            details = github.get_pull_request_details(pr.repository, pr.pull_request_number)
        except DashboardError as e:
            logger.warning("Could not fetch %s#%d: %s", pr.repository, pr.pull_request_number, e)
            errors.append((pr, str(e)))
            continue
        results.append(PullRequestWithDetails(pull_request=pr, details=details))
    return results, errors
