"""Endpoint catalog — single source of truth for Technitium API operations.

Standalone module (no project imports besides exceptions). Adding a new
operation means appending one EndpointDefinition to ENDPOINTS.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from technitium_cli.exceptions import EndpointNotFoundError

_NO_QUERY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class EndpointDefinition:
    """One remote operation: method, path, defaults, and auth requirement."""

    id: str
    method: str
    path: str
    requires_token: bool = True
    default_query: Mapping[str, Any] = field(default_factory=lambda: _NO_QUERY)
    description: str = ""


def _endpoint(
    endpoint_id, path, method="GET", requires_token=True, default_query=None, description=""
):
    return EndpointDefinition(
        id=endpoint_id,
        method=method,
        path=path,
        requires_token=requires_token,
        default_query=MappingProxyType(dict(default_query)) if default_query else _NO_QUERY,
        description=description,
    )


ENDPOINTS: tuple[EndpointDefinition, ...] = (
    # --- user / session ---
    _endpoint(
        "user.login",
        "/api/user/login",
        method="POST",
        requires_token=False,
        description="Authenticate with username/password and obtain a session token",
    ),
    _endpoint(
        "user.logout",
        "/api/user/logout",
        requires_token=False,
        description="Invalidate a session token",
    ),
    _endpoint("user.session.get", "/api/user/session/get", description="Current session info"),
    _endpoint("user.profile.get", "/api/user/profile/get", description="Current user profile"),
    # --- dashboard ---
    _endpoint(
        "dashboard.stats.get",
        "/api/dashboard/stats/get",
        default_query={"type": "LastHour", "utc": True},
        description="Dashboard statistics",
    ),
    _endpoint(
        "dashboard.stats.getTop",
        "/api/dashboard/stats/getTop",
        default_query={"type": "LastHour", "statsType": "TopClients", "limit": 10},
        description="Top clients/domains for a period",
    ),
    # --- zones ---
    _endpoint("zones.list", "/api/zones/list", description="List authoritative zones"),
    _endpoint(
        "zones.create",
        "/api/zones/create",
        default_query={"type": "Primary"},
        description="Create a zone",
    ),
    _endpoint("zones.delete", "/api/zones/delete", description="Delete a zone"),
    _endpoint("zones.enable", "/api/zones/enable", description="Enable a zone"),
    _endpoint("zones.disable", "/api/zones/disable", description="Disable a zone"),
    # --- zone records ---
    _endpoint(
        "zones.records.list",
        "/api/zones/records/get",
        description="List records for a domain",
    ),
    _endpoint("zones.records.add", "/api/zones/records/add", description="Add a record"),
    _endpoint("zones.records.update", "/api/zones/records/update", description="Update a record"),
    _endpoint("zones.records.delete", "/api/zones/records/delete", description="Delete a record"),
    # --- cache ---
    _endpoint("cache.list", "/api/cache/list", description="List cached zones"),
    _endpoint("cache.delete", "/api/cache/delete", description="Delete a cached zone"),
    _endpoint("cache.flush", "/api/cache/flush", description="Flush the DNS cache"),
    # --- allowed ---
    _endpoint("allowed.list", "/api/allowed/list", description="List allowed zones"),
    _endpoint("allowed.add", "/api/allowed/add", description="Allow a domain"),
    _endpoint("allowed.delete", "/api/allowed/delete", description="Remove an allowed domain"),
    _endpoint("allowed.flush", "/api/allowed/flush", description="Remove all allowed domains"),
    # --- blocked ---
    _endpoint("blocked.list", "/api/blocked/list", description="List blocked zones"),
    _endpoint("blocked.add", "/api/blocked/add", description="Block a domain"),
    _endpoint("blocked.delete", "/api/blocked/delete", description="Remove a blocked domain"),
    _endpoint("blocked.flush", "/api/blocked/flush", description="Remove all blocked domains"),
    # --- logs ---
    _endpoint("logs.list", "/api/logs/list", description="List server log files"),
    _endpoint("logs.download", "/api/logs/download", description="Download a log file"),
    _endpoint("logs.delete", "/api/logs/delete", description="Delete a log file"),
    # --- dns client ---
    _endpoint(
        "dns.resolve",
        "/api/dnsClient/resolve",
        default_query={"server": "this-server", "type": "A"},
        description="Resolve a name through the server's DNS client",
    ),
    # --- settings ---
    _endpoint("settings.get", "/api/settings/get", description="DNS server settings"),
)


def _build_catalog(definitions):
    """Index definitions by id. Duplicate ids are a programming error."""
    table = {}
    for definition in definitions:
        if definition.id in table:
            raise ValueError(f"Duplicate endpoint id in catalog: {definition.id!r}")
        table[definition.id] = definition
    return MappingProxyType(table)


CATALOG: Mapping[str, EndpointDefinition] = _build_catalog(ENDPOINTS)


def get_endpoint_definition(endpoint_id: str) -> EndpointDefinition:
    """Return an endpoint by id. Raises EndpointNotFoundError if not found."""
    try:
        return CATALOG[endpoint_id]
    except KeyError:
        raise EndpointNotFoundError(endpoint_id, CATALOG.keys()) from None


def list_endpoint_ids() -> frozenset[str]:
    """Return every registered endpoint id."""
    return frozenset(CATALOG)
