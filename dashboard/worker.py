"""
Redis pub/sub consumer.

Usage:
    python -m dashboard.worker
"""

import logging

from dashboard.core.logging_config import setup_logging
from dashboard.db.redis import get_redis_client
from dashboard.processors import MessageProcessor

log = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    processor = MessageProcessor(get_redis_client())
    log.info("Message processor starting...")
    try:
        processor.run()
    except KeyboardInterrupt:
        log.info("Message processor stopped")


if __name__ == "__main__":
    main()
