from fastapi import APIRouter, Depends

from dashboard.core.dependencies import RequireApiKey
from dashboard.schemas.jira import JiraIssuesResponse
from dashboard.services import jira
from dashboard.services.jira import JiraClient, get_jira_client

router = APIRouter(prefix="/api/jira", tags=["jira"], dependencies=[RequireApiKey])


@router.get("/manual_qa", response_model=JiraIssuesResponse)
def manual_qa_tickets(client: JiraClient = Depends(get_jira_client)):
    return jira.get_manual_qa_issues(client)


@router.get("/my_tickets", response_model=JiraIssuesResponse)
def my_tickets(client: JiraClient = Depends(get_jira_client)):
    return jira.get_my_tickets(client)
