"""Write tools: zones, records, cache, allow/block lists, raw calls (13 tools)."""

from __future__ import annotations

from typing import Any

from technitium_cli.mcp_server._core import _call, _contract_error, _finalize_tool_result
from technitium_cli.models import RESPONSE_TYPES, ApiCallOptions


def _record_query(zone, domain, record_type, ttl, params):
    query = {"zone": zone, "domain": domain, "type": record_type, "ttl": ttl}
    query.update(params or {})
    return query


def create_zone(zone: str, zone_type: str = "Primary", params: dict | None = None) -> dict:
    """Create a zone. params: extra query params (e.g. forwarder for Forwarder zones)."""
    return _finalize_tool_result(_call("create_zone", zone, zone_type, **(params or {})))


def delete_zone(zone: str) -> dict:
    """Permanently delete a zone."""
    return _finalize_tool_result(_call("delete_zone", zone))


def set_zone_enabled(zone: str, enabled: bool) -> dict:
    """Enable or disable a zone."""
    return _finalize_tool_result(_call("enable_zone" if enabled else "disable_zone", zone))


def add_zone_record(
    zone: str, domain: str, record_type: str, ttl: int | None = None, params: dict | None = None
) -> dict:
    """Add a record. params carry type-specific fields (ipAddress, cname, exchange, ...)."""
    return _finalize_tool_result(
        _call("add_zone_record", _record_query(zone, domain, record_type, ttl, params))
    )


def update_zone_record(
    zone: str, domain: str, record_type: str, ttl: int | None = None, params: dict | None = None
) -> dict:
    """Update a record. params identify the old value and carry new* fields."""
    return _finalize_tool_result(
        _call("update_zone_record", _record_query(zone, domain, record_type, ttl, params))
    )


def delete_zone_record(
    zone: str, domain: str, record_type: str, params: dict | None = None
) -> dict:
    """Delete a record. params identify the value to remove."""
    return _finalize_tool_result(
        _call("delete_zone_record", _record_query(zone, domain, record_type, None, params))
    )


def flush_cache() -> dict:
    """Flush the whole DNS cache."""
    return _finalize_tool_result(_call("flush_cache"))


def delete_cached_zone(domain: str) -> dict:
    """Remove one domain from the cache."""
    return _finalize_tool_result(_call("delete_cached_zone", domain))


def allow_zone(domain: str) -> dict:
    """Add a domain to the allowed list."""
    return _finalize_tool_result(_call("allow_zone", domain))


def delete_allowed_zone(domain: str) -> dict:
    """Remove a domain from the allowed list."""
    return _finalize_tool_result(_call("delete_allowed_zone", domain))


def block_zone(domain: str) -> dict:
    """Add a domain to the blocked list."""
    return _finalize_tool_result(_call("block_zone", domain))


def delete_blocked_zone(domain: str) -> dict:
    """Remove a domain from the blocked list."""
    return _finalize_tool_result(_call("delete_blocked_zone", domain))


def call_endpoint(
    endpoint_id: str,
    query: dict[str, Any] | None = None,
    method: str | None = None,
    body: Any = None,
    response_type: str = "auto",
) -> dict:
    """Raw call to any catalog endpoint id (see the technitiumdns-cli 'endpoints' command)."""
    if response_type not in RESPONSE_TYPES or response_type == "stream":
        return _contract_error(f"Unsupported response_type: {response_type}", "error")
    options = ApiCallOptions(method=method, query=query, body=body, response_type=response_type)
    return _finalize_tool_result(_call("call", endpoint_id, options))


def register(mcp):
    """Register all write tools with the FastMCP instance."""
    mcp.tool()(create_zone)
    mcp.tool()(delete_zone)
    mcp.tool()(set_zone_enabled)
    mcp.tool()(add_zone_record)
    mcp.tool()(update_zone_record)
    mcp.tool()(delete_zone_record)
    mcp.tool()(flush_cache)
    mcp.tool()(delete_cached_zone)
    mcp.tool()(allow_zone)
    mcp.tool()(delete_allowed_zone)
    mcp.tool()(block_zone)
    mcp.tool()(delete_blocked_zone)
    mcp.tool()(call_endpoint)
