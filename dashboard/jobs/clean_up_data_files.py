from dashboard.core.config import settings
from dashboard.services.file_system import clean_up_dated_directories


def run() -> list[str]:
    return clean_up_dated_directories(settings.DATA_FILES_RETENTION_DAYS)
