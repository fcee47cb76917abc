from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class PullRequestCreate(BaseModel):
    pull_request_number: int = Field(..., gt=0)
    repository: str = Field(..., min_length=3, max_length=255, pattern=r"^[\w.-]+/[\w.-]+$")


class PullRequestResponse(BaseModel):
    id: int
    pull_request_number: int
    repository: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PullRequestLabel(BaseModel):
    name: str
    color: Optional[str] = None


class PullRequestAuthor(BaseModel):
    username: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None


class PullRequestDetails(BaseModel):
    id: int
    number: int
    title: str
    state: str
    is_draft: bool = False
    url: str
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    labels: List[PullRequestLabel] = []
    mergeable_state: Optional[str] = None
    merged: bool = False
    author: PullRequestAuthor
