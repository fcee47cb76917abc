import logging
import uuid
from datetime import date, datetime

from redis import Redis

from dashboard.db.redis import get_redis_client
from dashboard.services.publisher import publish_e2e_report_request

logger = logging.getLogger(__name__)


def run(redis: Redis | None = None, report_date: date | None = None) -> str:
    """Ask the processor to build today's (UTC) E2E report."""
    report_date = report_date or datetime.utcnow().date()
    request_id = publish_e2e_report_request(redis or get_redis_client(), report_date, str(uuid.uuid4()))
    logger.info("Requested E2E report for %s", report_date, extra={"request_id": request_id})
    return request_id
