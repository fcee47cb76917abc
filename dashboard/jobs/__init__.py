import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


def run_job(name: str, func: Callable[[], object]) -> None:
    """Run a scheduled job, logging its outcome; errors never reach the scheduler."""
    start = time.perf_counter()
    logger.info("Job %s started", name, extra={"job": name})
    try:
        result = func()
    except Exception as e:
        logger.exception("Job %s failed: %s", name, e, extra={"job": name})
        return
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        "Job %s finished in %.2fms: %s", name, duration_ms, result,
        extra={"job": name, "duration_ms": duration_ms},
    )
