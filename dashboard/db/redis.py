import logging

from redis import Redis

from dashboard.core.config import settings

logger = logging.getLogger(__name__)

NOTIFICATION_CHANNEL = "notification:create"
E2E_REPORT_CHANNEL = "e2e:report:generate"
PULL_REQUEST_DELETE_CHANNEL = "pull-request:delete"

_client: Redis | None = None


def get_redis_client() -> Redis:
    global _client
    if _client is None:
        _client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


def get_redis():
    """FastAPI dependency returning the shared Redis client."""
    return get_redis_client()
