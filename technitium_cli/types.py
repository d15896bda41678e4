"""Typed definitions for config patches and TechnitiumClient responses.

The response TypedDicts document the shape of the ``response`` object the
server returns. They are optional — runtime behavior is unchanged (plain dicts).
"""

from __future__ import annotations

from typing import Any, TypedDict, Union

QueryValue = Union[str, int, float, bool, None, list, tuple]
QueryParams = dict[str, QueryValue]

# ---------------------------------------------------------------------------
# Configuration patches (one per section, every key optional)
# ---------------------------------------------------------------------------


class AppPatch(TypedDict, total=False):
    name: str
    version: str
    description: str


class ApiPatch(TypedDict, total=False):
    base_url: str
    timeout_ms: float
    verify_tls: bool


class AuthPatch(TypedDict, total=False):
    username: str
    password: str
    token: str
    totp: str


class CliPatch(TypedDict, total=False):
    default_output_format: str
    pretty_print_json: bool
    colorize_json: bool


class ConfigPatch(TypedDict, total=False):
    """One configuration layer, already validated and coerced."""

    app: AppPatch
    api: ApiPatch
    auth: AuthPatch
    cli: CliPatch


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------


class Envelope(TypedDict, total=False):
    """JSON wrapper every Technitium API response uses."""

    status: str
    response: Any
    errorMessage: str
    stackTrace: str


# ---------------------------------------------------------------------------
# User / session
# ---------------------------------------------------------------------------


class SessionInfo(TypedDict, total=False):
    displayName: str
    username: str
    token: str
    info: dict[str, Any]


class LoginResponse(SessionInfo, total=False):
    """Returned by ``user.login``; ``token`` is the new session token."""


# ---------------------------------------------------------------------------
# Dashboard / zones / records
# ---------------------------------------------------------------------------


class DashboardStats(TypedDict, total=False):
    stats: dict[str, Any]
    mainChartData: dict[str, Any]
    topClients: list[dict[str, Any]]
    topDomains: list[dict[str, Any]]
    topBlockedDomains: list[dict[str, Any]]


class ZoneRow(TypedDict, total=False):
    name: str
    type: str
    internal: bool
    dnssecStatus: str
    soaSerial: int
    disabled: bool
    lastModified: str


class ZoneList(TypedDict, total=False):
    pageNumber: int
    totalPages: int
    totalZones: int
    zones: list[ZoneRow]


class RecordRow(TypedDict, total=False):
    name: str
    type: str
    ttl: int
    disabled: bool
    rData: dict[str, Any]


class ZoneRecordList(TypedDict, total=False):
    zone: dict[str, Any]
    records: list[RecordRow]


# ---------------------------------------------------------------------------
# Cache / allowed / blocked
# ---------------------------------------------------------------------------


class ZoneTree(TypedDict, total=False):
    """Shared shape of ``cache.list``, ``allowed.list`` and ``blocked.list``."""

    domain: str
    zones: list[str]
    records: list[RecordRow]


# ---------------------------------------------------------------------------
# Logs / DNS client
# ---------------------------------------------------------------------------


class LogFile(TypedDict):
    fileName: str
    size: str


class LogList(TypedDict, total=False):
    logFiles: list[LogFile]


class DnsResolveResult(TypedDict, total=False):
    result: dict[str, Any]
    rawResponses: list[Any]
