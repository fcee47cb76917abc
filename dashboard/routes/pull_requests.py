from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.session import get_db
from dashboard.schemas.pull_request import PullRequestCreate, PullRequestDetails, PullRequestResponse
from dashboard.services import pull_requests
from dashboard.services.github import GitHubClient, get_github_client

router = APIRouter(prefix="/api/pull_requests", tags=["pull_requests"], dependencies=[RequireApiKey])


@router.get("", response_model=list[PullRequestResponse])
def list_pull_requests(db: Session = Depends(get_db)):
    return pull_requests.list_pull_requests(db)


@router.post("", response_model=PullRequestResponse, status_code=201)
def add_pull_request(body: PullRequestCreate, db: Session = Depends(get_db)):
    return pull_requests.add_pull_request(db, body)


@router.get("/{pr_id}", response_model=PullRequestDetails)
def get_pull_request_details(
    pr_id: int,
    db: Session = Depends(get_db),
    github: GitHubClient = Depends(get_github_client),
):
    return pull_requests.get_details(db, github, pr_id)


@router.delete("/{pr_id}", status_code=204)
def delete_pull_request(pr_id: int, db: Session = Depends(get_db)):
    pull_requests.delete_pull_request(db, pr_id)
