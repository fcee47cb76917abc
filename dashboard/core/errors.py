class DashboardError(Exception):
    """Base error raised by services; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(DashboardError):
    status_code = 400


class NotFound(DashboardError):
    status_code = 404


class Conflict(DashboardError):
    status_code = 409


class ConfigurationError(DashboardError):
    status_code = 500


class ExternalServiceError(DashboardError):
    """An upstream API (GitHub, Jira, CircleCI, Cypress) failed or answered non-2xx."""

    status_code = 502

    def __init__(self, service: str, message: str, upstream_status: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.upstream_status = upstream_status


class Forbidden(DashboardError):
    status_code = 403
