"""
Typed models for dispatcher calls and CLI command payloads.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple

from technitium_cli._utils import _collect_key_value, _parse_primitive
from technitium_cli.exceptions import CliError

TokenSource = Literal["explicit", "config", "login", "unknown"]
TOKEN_SOURCES: tuple[str, ...] = ("explicit", "config", "login", "unknown")

ResponseType = Literal["auto", "json", "text", "bytes", "stream"]
RESPONSE_TYPES: tuple[str, ...] = ("auto", "json", "text", "bytes", "stream")

AUTH_MODES = {"auto": None, "on": True, "off": False}


class SessionTokenSnapshot(NamedTuple):
    """Current session token and where it came from."""

    token: str | None
    source: TokenSource


@dataclass(frozen=True)
class ApiCallOptions:
    """Per-call request overrides for TechnitiumClient.call()."""

    method: str | None = None
    query: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    body: Any = None
    token: str | None = None
    include_token: bool | None = None
    timeout_ms: float | None = None
    response_type: ResponseType = "auto"
    signal: Any = None

    def __post_init__(self):
        if self.response_type not in RESPONSE_TYPES:
            raise CliError(
                f"[ERROR] Invalid response type '{self.response_type}'. "
                f"Use: {', '.join(RESPONSE_TYPES)}"
            )


@dataclass
class ApiCallResult:
    """Normalized outcome of a successful call."""

    endpoint: Any
    data: Any
    status: str
    raw: dict = field(default_factory=dict)
    response: Any = None


@dataclass(frozen=True)
class ObjectPayload:
    """Typed wrapper for a raw JSON request body given on the command line."""

    data: Any

    @classmethod
    def from_text(cls, text, context="--body"):
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise CliError(
                f"[ERROR] Invalid JSON in {context}: {e.msg} at position {e.pos}"
            ) from None
        return cls(data=value)


@dataclass(frozen=True)
class CallSpec:
    """Validated input contract for the generic ``call`` command."""

    endpoint_id: str
    options: ApiCallOptions

    @classmethod
    def from_namespace(cls, ns):
        endpoint_id = (ns.endpoint_id or "").strip()
        if not endpoint_id:
            raise CliError("[ERROR] Endpoint id cannot be empty.")

        raw_query = _collect_key_value(ns.query, "query parameter")
        query = {}
        for key, value in raw_query.items():
            if isinstance(value, list):
                query[key] = [_parse_primitive(v) for v in value]
            else:
                query[key] = _parse_primitive(value)

        headers = {}
        for key, value in _collect_key_value(ns.header, "header").items():
            # Last occurrence wins for repeated headers.
            headers[key] = value[-1] if isinstance(value, list) else value

        auth_mode = (ns.auth or "auto").lower()
        if auth_mode not in AUTH_MODES:
            raise CliError(f"[ERROR] Invalid auth mode '{ns.auth}'. Use: auto, on, off")

        body = ObjectPayload.from_text(ns.body).data if ns.body else None

        return cls(
            endpoint_id=endpoint_id,
            options=ApiCallOptions(
                method=ns.method,
                query=query or None,
                headers=headers or None,
                body=body,
                token=ns.token,
                include_token=AUTH_MODES[auth_mode],
                timeout_ms=ns.timeout_ms,
                response_type=ns.response_type or "auto",
            ),
        )
