"""
technitiumdns-cli exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""


class CliError(Exception):
    """Exit code 1 — validation, network, parse errors."""

    exit_code = 1


class ConfigurationError(CliError):
    """Exit code 2 — missing base URL, credentials, or token."""

    exit_code = 2

    def __init__(self, message, endpoint_id=None, endpoint_path=None):
        super().__init__(message)
        self.endpoint_id = endpoint_id
        self.endpoint_path = endpoint_path


class EndpointNotFoundError(CliError):
    """Raised before any network attempt when an endpoint id is unknown."""

    def __init__(self, endpoint_id, known_ids=()):
        super().__init__(f"[ERROR] Unknown endpoint id: {endpoint_id}")
        self.endpoint_id = endpoint_id
        self.known_ids = sorted(known_ids)


class HTTPError(CliError):
    """Non-2xx transport response."""

    def __init__(
        self,
        message,
        status_code,
        status_text="",
        endpoint_id=None,
        endpoint_path=None,
        payload=None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.endpoint_id = endpoint_id
        self.endpoint_path = endpoint_path
        self.payload = payload


class ApiError(CliError):
    """Envelope-level failure reported by the server despite a 2xx status."""

    def __init__(self, message, status, endpoint_id=None, endpoint_path=None, payload=None):
        super().__init__(message)
        self.status = status
        self.endpoint_id = endpoint_id
        self.endpoint_path = endpoint_path
        self.payload = payload


class RequestTimeoutError(CliError):
    """Exit code 3 — timeout budget exceeded or request cancelled."""

    exit_code = 3

    def __init__(
        self,
        message,
        endpoint_id=None,
        endpoint_path=None,
        timeout_ms=None,
        cancelled=False,
    ):
        super().__init__(message)
        self.endpoint_id = endpoint_id
        self.endpoint_path = endpoint_path
        self.timeout_ms = timeout_ms
        self.cancelled = cancelled
