from typing import Optional, List
from pydantic import BaseModel


class JiraParent(BaseModel):
    id: str
    key: str
    url: str
    summary: Optional[str] = None


class JiraIssue(BaseModel):
    id: str
    key: str
    url: str
    summary: str
    status: str
    created: str
    updated: str
    parent: Optional[JiraParent] = None
    assignee: str = "Unassigned"
    reporter: str = "Unknown"
    labels: List[str] = []
    priority: str = "None"


class JiraIssuesResponse(BaseModel):
    total: int
    issues: List[JiraIssue]
