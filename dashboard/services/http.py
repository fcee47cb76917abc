import logging
import threading
from typing import Any, Callable, Hashable, TypeVar

import httpx

from dashboard.core.config import settings
from dashboard.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

C = TypeVar("C")

# name -> (configuration, client)
_shared_clients: dict[str, tuple[Hashable, Any]] = {}
_shared_lock = threading.Lock()


def build_client(
    base_url: str,
    *,
    headers: dict[str, str] | None = None,
    auth: httpx.Auth | tuple[str, str] | None = None,
    timeout_seconds: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    timeout = httpx.Timeout(timeout_seconds or settings.HTTP_TIMEOUT_SECONDS, connect=10.0)
    return httpx.Client(
        base_url=base_url.rstrip("/"),
        headers=headers,
        auth=auth,
        timeout=timeout,
        transport=transport,
    )


def send(client: httpx.Client, service: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Issue a request and translate transport errors and non-2xx answers."""
    try:
        r = client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.error("%s request %s %s failed: %s", service, method, url, e)
        raise ExternalServiceError(service, f"request failed: {e}") from e

    if r.is_error:
        logger.error(
            "%s request %s %s returned %d: %s",
            service, method, url, r.status_code, r.text[:500],
        )
        raise ExternalServiceError(
            service,
            f"{r.status_code} {r.reason_phrase}",
            upstream_status=r.status_code,
        )
    return r


def shared_client(name: str, config: Hashable, factory: Callable[[], C]) -> C:
    """One long-lived client per upstream, rebuilt when its configuration changes."""
    with _shared_lock:
        cached = _shared_clients.get(name)
        if cached is not None and cached[0] == config:
            return cached[1]
        client = factory()
        _shared_clients[name] = (config, client)
    if cached is not None:
        cached[1].close()
    return client


def close_shared_clients() -> None:
    with _shared_lock:
        clients = [client for _, client in _shared_clients.values()]
        _shared_clients.clear()
    for client in clients:
        client.close()
    if clients:
        logger.info("Closed %d upstream HTTP clients", len(clients))
