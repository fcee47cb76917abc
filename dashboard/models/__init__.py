from dashboard.models.todo import Todo
from dashboard.models.application import Application
from dashboard.models.pull_request import PullRequest
from dashboard.models.e2e_report import E2EReportSummary, E2EReportDetail, ReportStatus
from dashboard.models.e2e_manual_run import E2EManualRun
from dashboard.models.notification import Notification, NotificationType
from dashboard.models.device_token import DeviceToken

__all__ = [
    "Todo",
    "Application",
    "PullRequest",
    "E2EReportSummary",
    "E2EReportDetail",
    "ReportStatus",
    "E2EManualRun",
    "Notification",
    "NotificationType",
    "DeviceToken",
]
