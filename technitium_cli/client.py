"""
TechnitiumClient — public Python API for the Technitium DNS Server admin API.

Single entry point for programmatic use, the CLI, and the MCP server.
``call()`` dispatches any catalog endpoint; the convenience methods are thin
typed wrappers that return the envelope's ``response`` object.
"""

from __future__ import annotations

import dataclasses
import http.client
import json
import logging
import threading
import time
import urllib.error
import urllib.parse
from typing import Any

from technitium_cli.api import (
    Cancellation,
    HttpRequest,
    RequestAborted,
    _log_http_event,
    _sanitize_url_for_log,
    is_json_content_type,
    urllib_transport,
)
from technitium_cli.config import DEFAULT_TIMEOUT_MS
from technitium_cli.endpoints import get_endpoint_definition
from technitium_cli.exceptions import (
    ApiError,
    CliError,
    ConfigurationError,
    HTTPError,
    RequestTimeoutError,
)
from technitium_cli.models import ApiCallOptions, ApiCallResult, SessionTokenSnapshot
from technitium_cli.session import SessionState
from technitium_cli.types import (
    DashboardStats,
    DnsResolveResult,
    Envelope,
    LogList,
    LoginResponse,
    QueryParams,
    SessionInfo,
    ZoneList,
    ZoneRecordList,
    ZoneTree,
)

logger = logging.getLogger(__name__)

# Cancellation reason used by the per-call budget timer.
_DEADLINE = object()

# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def _normalize_base_url(base_url):
    base_url = base_url.strip()
    return base_url if base_url.endswith("/") else base_url + "/"


def _encode_query_value(value):
    """Render one scalar query value as the server expects it."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _set_query_param(pairs, key, value):
    """Replace every existing *key* in *pairs*. Lists become repeated keys."""
    pairs[:] = [(k, v) for k, v in pairs if k != key]
    if isinstance(value, (list, tuple)):
        pairs.extend((key, _encode_query_value(v)) for v in value if v is not None)
    else:
        pairs.append((key, _encode_query_value(value)))


def _lower_headers(headers):
    return {str(k).lower(): str(v) for k, v in (headers or {}).items()}


def _resolve_body(body, headers):
    """Return the wire body; JSON-encodes structured values in place of *body*."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview, str)) or hasattr(body, "read"):
        return body
    if "content-type" not in headers:
        headers["content-type"] = "application/json"
    return json.dumps(body)


def _is_socket_timeout(exc):
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, urllib.error.URLError) and isinstance(exc.reason, TimeoutError)


def _error_payload(response, cancel):
    """Best-effort JSON payload of an error response; None when absent or invalid."""
    if not is_json_content_type(response.content_type):
        return None
    try:
        return json.loads(response.read(cancel).decode("utf-8"))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class TechnitiumClient:
    """Dispatcher for catalog endpoints with token lifecycle management.

    Args:
        api: ``ApiSection`` carrying base_url, timeout_ms and verify_tls.
        auth: optional ``AuthSection``; a configured token seeds the session.
        default_headers: headers sent with every request.
        transport: callable ``(HttpRequest, timeout_s, Cancellation) -> HttpResponse``.
    """

    def __init__(self, api, auth=None, default_headers=None, transport=None):
        if api is None or not (api.base_url or "").strip():
            raise ConfigurationError(
                "[ERROR] Technitium API base URL is not configured (api.baseUrl)."
            )
        self.base_url = _normalize_base_url(api.base_url)
        self.timeout_ms = api.timeout_ms if api.timeout_ms is not None else DEFAULT_TIMEOUT_MS
        self.verify_tls = api.verify_tls
        self._auth = auth
        self._transport = transport or urllib_transport
        self._default_headers = {"accept": "application/json"}
        self._default_headers.update(_lower_headers(default_headers))
        self._session = SessionState()
        if auth is not None and auth.token:
            self._session.set_token(auth.token, "config")

    # -------------------------------------------------------------------
    # Session state
    # -------------------------------------------------------------------

    def get_session_token(self) -> SessionTokenSnapshot:
        return self._session.snapshot()

    def set_session_token(self, token: str | None, source: str = "explicit") -> None:
        self._session.set_token(token, source)

    def _resolve_token(self, explicit=None):
        if explicit:
            return explicit
        if self._session.token:
            return self._session.token
        if self._auth is not None and self._auth.token:
            return self._auth.token
        return None

    # -------------------------------------------------------------------
    # Request building
    # -------------------------------------------------------------------

    def build_url(self, endpoint, options: ApiCallOptions | None = None) -> str:
        """Absolute request URL for *endpoint*, including query and token."""
        options = options or ApiCallOptions()
        url = urllib.parse.urljoin(self.base_url, endpoint.path.lstrip("/"))

        pairs: list[tuple[str, str]] = []
        for key, value in endpoint.default_query.items():
            _set_query_param(pairs, key, value)
        for key, value in (options.query or {}).items():
            if value is None:
                continue
            _set_query_param(pairs, key, value)

        include_token = options.include_token
        if include_token is None:
            include_token = endpoint.requires_token
        if include_token and not any(k == "token" for k, _ in pairs):
            token = self._resolve_token(options.token)
            if not token:
                raise ConfigurationError(
                    f"[ERROR] Endpoint '{endpoint.id}' requires an API token. "
                    "Run: technitiumdns-cli auth login  (or auth set-token <token>)",
                    endpoint_id=endpoint.id,
                    endpoint_path=endpoint.path,
                )
            pairs.append(("token", token))

        query = urllib.parse.urlencode(pairs)
        return f"{url}?{query}" if query else url

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------

    def call(
        self, endpoint_id: str, options: ApiCallOptions | None = None, **overrides: Any
    ) -> ApiCallResult:
        """Execute one endpoint call.

        Keyword *overrides* are ApiCallOptions fields applied over *options*.
        Raises EndpointNotFoundError, ConfigurationError, HTTPError, ApiError,
        RequestTimeoutError, or CliError for connection failures.

        With ``response_type="stream"`` the timeout covers the call only up to
        the response headers. The deadline timer stops when call() returns and
        the caller owns the open body; reads from it are bounded only by the
        socket timeout. Read it with ``iter_chunks(cancel)`` or close() it to
        stop a slow stream.
        """
        options = options or ApiCallOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)

        endpoint = get_endpoint_definition(endpoint_id)
        method = (options.method or endpoint.method).upper()
        url = self.build_url(endpoint, options)
        headers = dict(self._default_headers)
        headers.update(_lower_headers(options.headers))
        body = _resolve_body(options.body, headers)
        timeout_ms = options.timeout_ms if options.timeout_ms is not None else self.timeout_ms
        request = HttpRequest(method, url, headers, body, self.verify_tls)

        scope = Cancellation()
        signal = options.signal

        def _forward_cancel():
            scope.cancel(signal.reason)

        if signal is not None:
            signal.add_callback(_forward_cancel)
        timer = None
        if timeout_ms and timeout_ms > 0:
            timer = threading.Timer(timeout_ms / 1000, scope.cancel, args=(_DEADLINE,))
            timer.daemon = True
            timer.start()

        response = None
        keep_open = False
        start = time.perf_counter()
        _log_http_event(
            phase="request",
            endpoint=endpoint.id,
            method=method,
            url=_sanitize_url_for_log(url),
            timeout_ms=timeout_ms,
        )
        try:
            if scope.cancelled:
                raise RequestAborted()
            response = self._transport(
                request, timeout_ms / 1000 if timeout_ms and timeout_ms > 0 else None, scope
            )
            _log_http_event(
                phase="response",
                endpoint=endpoint.id,
                status=response.status,
                content_type=response.content_type,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            if not response.ok:
                status_line = f"{response.status} {response.reason}".strip()
                raise HTTPError(
                    f"[ERROR] HTTP {status_line} from {endpoint.id}",
                    response.status,
                    response.reason,
                    endpoint_id=endpoint.id,
                    endpoint_path=endpoint.path,
                    payload=_error_payload(response, scope),
                )
            envelope = self._decode(endpoint, response, options.response_type, scope)
            result = self._classify(endpoint, envelope, response)
            keep_open = options.response_type == "stream"
            return result
        except (RequestAborted, OSError, ValueError, http.client.HTTPException) as e:
            raise self._transport_failure(endpoint, e, scope, timeout_ms) from e
        finally:
            if timer is not None:
                timer.cancel()
            if signal is not None:
                signal.remove_callback(_forward_cancel)
            if response is not None and not keep_open:
                response.close()

    def _transport_failure(self, endpoint, exc, scope, timeout_ms):
        """Map a low-level failure to the error the caller sees."""
        if scope.cancelled:
            if scope.reason is _DEADLINE:
                return RequestTimeoutError(
                    f"[ERROR] Request to {endpoint.id} timed out after {timeout_ms:g} ms",
                    endpoint_id=endpoint.id,
                    endpoint_path=endpoint.path,
                    timeout_ms=timeout_ms,
                )
            if isinstance(scope.reason, BaseException):
                return scope.reason
            detail = f": {scope.reason}" if scope.reason else ""
            return RequestTimeoutError(
                f"[ERROR] Request to {endpoint.id} was cancelled{detail}",
                endpoint_id=endpoint.id,
                endpoint_path=endpoint.path,
                timeout_ms=timeout_ms,
                cancelled=True,
            )
        if _is_socket_timeout(exc):
            return RequestTimeoutError(
                f"[ERROR] Request to {endpoint.id} timed out after {timeout_ms:g} ms",
                endpoint_id=endpoint.id,
                endpoint_path=endpoint.path,
                timeout_ms=timeout_ms,
            )
        reason = exc.reason if isinstance(exc, urllib.error.URLError) else exc
        return CliError(f"[ERROR] Connection failed: {reason}")

    def _decode(self, endpoint, response, response_type, cancel) -> Envelope:
        """Turn a 2xx response body into an envelope dict."""
        if response_type == "stream":
            return {"status": "ok", "response": response}
        if response_type == "bytes":
            return {"status": "ok", "response": response.read(cancel)}
        if response_type == "text" or (
            response_type == "auto" and not is_json_content_type(response.content_type)
        ):
            return {"status": "ok", "response": response.text(cancel)}

        raw = response.read(cancel)
        try:
            value = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise ApiError(
                f"[ERROR] Invalid JSON response from {endpoint.id}: {e}",
                "invalid_response",
                endpoint_id=endpoint.id,
                endpoint_path=endpoint.path,
                payload=raw.decode("utf-8", errors="replace"),
            ) from None
        if not isinstance(value, dict):
            return {"status": "ok", "response": value}
        return value

    def _classify(self, endpoint, envelope, response):
        status = envelope.get("status")
        if isinstance(status, str) and status != "ok":
            message = envelope.get("errorMessage")
            if not isinstance(message, str) or not message:
                message = f"Technitium API call {endpoint.id} failed with status '{status}'"
            raise ApiError(
                message,
                status,
                endpoint_id=endpoint.id,
                endpoint_path=endpoint.path,
                payload=envelope,
            )
        data = envelope["response"] if "response" in envelope else envelope
        return ApiCallResult(
            endpoint=endpoint,
            data=data,
            status=status if isinstance(status, str) else "ok",
            raw=envelope,
            response=response,
        )

    def _data(self, endpoint_id, query=None, **overrides):
        return self.call(endpoint_id, query=query, **overrides).data

    # -------------------------------------------------------------------
    # User / session
    # -------------------------------------------------------------------

    def login(
        self,
        username: str | None = None,
        password: str | None = None,
        totp: str | None = None,
        *,
        include_info: bool = False,
    ) -> LoginResponse:
        """Authenticate and store the new session token (source ``login``).

        Credentials fall back to the configured ``auth`` section.
        """
        auth = self._auth
        username = username or (auth.username if auth else None)
        password = password or (auth.password if auth else None)
        totp = totp or (auth.totp if auth else None)
        if not username or not password:
            raise ConfigurationError(
                "[ERROR] Username and password are required to log in. "
                "Pass --username/--password or set auth.username/auth.password.",
                endpoint_id="user.login",
            )
        data = self._data(
            "user.login",
            {
                "user": username,
                "pass": password,
                "totp": totp,
                "includeInfo": True if include_info else None,
            },
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise ApiError(
                "[ERROR] Login response did not include a session token.",
                "invalid_response",
                endpoint_id="user.login",
                payload=data,
            )
        self._session.set_token(token, "login")
        logger.info("Logged in as %s", username, extra={"event": "auth.login"})
        return data

    def logout(self, token: str | None = None) -> dict[str, Any]:
        """Invalidate *token* (default: the current session token)."""
        target = token or self._resolve_token()
        if not target:
            raise ConfigurationError(
                "[ERROR] No session token to log out. Pass --token or log in first.",
                endpoint_id="user.logout",
            )
        result = self.call("user.logout", query={"token": target}, include_token=False)
        if not token:
            self._session.set_token(None, "explicit")
        return {"ok": True, "status": result.status}

    def get_session_info(self) -> SessionInfo:
        return self._data("user.session.get")

    def get_profile(self) -> SessionInfo:
        return self._data("user.profile.get")

    # -------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------

    def get_dashboard_stats(self, query: dict[str, Any] | None = None) -> DashboardStats:
        return self._data("dashboard.stats.get", query)

    def get_top_stats(
        self,
        *,
        stats_type: str | None = None,
        period: str | None = None,
        limit: int | None = None,
        node: str | None = None,
    ) -> DashboardStats:
        return self._data(
            "dashboard.stats.getTop",
            {"statsType": stats_type, "type": period, "limit": limit, "node": node},
        )

    # -------------------------------------------------------------------
    # Zones
    # -------------------------------------------------------------------

    def list_zones(self, query: dict[str, Any] | None = None) -> ZoneList:
        return self._data("zones.list", query)

    def create_zone(
        self, zone: str, zone_type: str | None = None, **extra: Any
    ) -> dict[str, Any]:
        """Create *zone*. Extra keyword args are passed as query params."""
        return self._data("zones.create", {"zone": zone, "type": zone_type, **extra})

    def delete_zone(self, zone: str, node: str | None = None) -> dict[str, Any]:
        return self._data("zones.delete", {"zone": zone, "node": node})

    def enable_zone(self, zone: str, node: str | None = None) -> dict[str, Any]:
        return self._data("zones.enable", {"zone": zone, "node": node})

    def disable_zone(self, zone: str, node: str | None = None) -> dict[str, Any]:
        return self._data("zones.disable", {"zone": zone, "node": node})

    def list_zone_records(
        self,
        zone: str | None = None,
        domain: str | None = None,
        list_zone: bool = False,
        node: str | None = None,
    ) -> ZoneRecordList:
        """Records at *domain* (defaults to the zone apex); ``list_zone`` returns all."""
        if not zone and not domain:
            raise CliError("[ERROR] A zone or domain is required to list records.")
        return self._data(
            "zones.records.list",
            {
                "zone": zone,
                "domain": domain or zone,
                "listZone": True if list_zone else None,
                "node": node,
            },
        )

    def add_zone_record(self, query: QueryParams) -> dict[str, Any]:
        return self._data("zones.records.add", query)

    def update_zone_record(self, query: QueryParams) -> dict[str, Any]:
        return self._data("zones.records.update", query)

    def delete_zone_record(self, query: QueryParams) -> dict[str, Any]:
        return self._data("zones.records.delete", query)

    # -------------------------------------------------------------------
    # Cache / allowed / blocked
    # -------------------------------------------------------------------

    def list_cached_zones(self, query: dict[str, Any] | None = None) -> ZoneTree:
        return self._data("cache.list", query)

    def flush_cache(self) -> dict[str, Any]:
        return self._data("cache.flush")

    def delete_cached_zone(self, domain: str) -> dict[str, Any]:
        return self._data("cache.delete", {"domain": domain})

    def list_allowed_zones(self, query: dict[str, Any] | None = None) -> ZoneTree:
        return self._data("allowed.list", query)

    def allow_zone(self, domain: str) -> dict[str, Any]:
        return self._data("allowed.add", {"domain": domain})

    def delete_allowed_zone(self, domain: str) -> dict[str, Any]:
        return self._data("allowed.delete", {"domain": domain})

    def flush_allowed_zones(self) -> dict[str, Any]:
        return self._data("allowed.flush")

    def list_blocked_zones(self, query: dict[str, Any] | None = None) -> ZoneTree:
        return self._data("blocked.list", query)

    def block_zone(self, domain: str) -> dict[str, Any]:
        return self._data("blocked.add", {"domain": domain})

    def delete_blocked_zone(self, domain: str) -> dict[str, Any]:
        return self._data("blocked.delete", {"domain": domain})

    def flush_blocked_zones(self) -> dict[str, Any]:
        return self._data("blocked.flush")

    # -------------------------------------------------------------------
    # Logs / DNS client / settings
    # -------------------------------------------------------------------

    def list_logs(self) -> LogList:
        return self._data("logs.list")

    def download_log(self, file_name: str) -> str:
        """Log file contents as text."""
        return self._data("logs.download", {"fileName": file_name}, response_type="text")

    def delete_log(self, file_name: str) -> dict[str, Any]:
        return self._data("logs.delete", {"log": file_name})

    def resolve_dns(
        self,
        domain: str,
        record_type: str | None = None,
        server: str | None = None,
        protocol: str | None = None,
        dnssec: bool = False,
    ) -> DnsResolveResult:
        return self._data(
            "dns.resolve",
            {
                "domain": domain,
                "type": record_type,
                "server": server,
                "protocol": protocol,
                "dnssec": True if dnssec else None,
            },
        )

    def get_settings(self) -> dict[str, Any]:
        return self._data("settings.get")


def create_client(configuration, **kwargs) -> TechnitiumClient:
    """Build a client from a resolved ``Configuration``."""
    return TechnitiumClient(configuration.api, auth=configuration.auth, **kwargs)
