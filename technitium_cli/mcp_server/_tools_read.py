"""Read tools: session, dashboard, zones, lists, logs, resolver (11 tools)."""

from __future__ import annotations

from typing import Literal

from technitium_cli.mcp_server._core import _call, _finalize_tool_result

StatsPeriod = Literal["LastHour", "LastDay", "LastWeek", "LastMonth", "LastYear"]


def get_session_info() -> dict:
    """Current session: username, display name, and server info."""
    result = _call("get_session_info")
    if isinstance(result, dict) and result.get("token"):
        result = {k: v for k, v in result.items() if k != "token"}
    return _finalize_tool_result(result)


def get_dashboard_stats(period: StatsPeriod = "LastHour") -> dict:
    """Dashboard counters plus top clients/domains for a period."""
    return _finalize_tool_result(_call("get_dashboard_stats", {"type": period}))


def get_top_stats(
    stats_type: Literal["TopClients", "TopDomains", "TopBlockedDomains"] = "TopClients",
    period: StatsPeriod = "LastHour",
    limit: int = 10,
) -> dict:
    """Top clients, domains, or blocked domains."""
    return _finalize_tool_result(
        _call("get_top_stats", stats_type=stats_type, period=period, limit=limit)
    )


def list_zones(page: int | None = None, per_page: int | None = None) -> dict:
    """List authoritative zones.

    Returns:
        Dict with zones (name, type, disabled, dnssecStatus, ...) and paging fields.
    """
    return _finalize_tool_result(
        _call("list_zones", {"pageNumber": page, "zonesPerPage": per_page})
    )


def list_zone_records(domain: str, zone: str | None = None, list_zone: bool = False) -> dict:
    """Records at a domain. Set list_zone=True for every record in the zone."""
    return _finalize_tool_result(_call("list_zone_records", zone, domain, list_zone))


def list_cached_zones(domain: str | None = None) -> dict:
    """Browse the DNS cache; domain drills into a subtree."""
    return _finalize_tool_result(_call("list_cached_zones", {"domain": domain}))


def list_allowed_zones(domain: str | None = None) -> dict:
    """Browse allowed zones."""
    return _finalize_tool_result(_call("list_allowed_zones", {"domain": domain}))


def list_blocked_zones(domain: str | None = None) -> dict:
    """Browse blocked zones."""
    return _finalize_tool_result(_call("list_blocked_zones", {"domain": domain}))


def list_logs() -> dict:
    """Server log files (fileName, size)."""
    return _finalize_tool_result(_call("list_logs"))


def resolve_dns(
    domain: str,
    record_type: str = "A",
    server: str | None = None,
    protocol: Literal["Udp", "Tcp", "Tls", "Https", "Quic"] | None = None,
    dnssec: bool = False,
) -> dict:
    """Resolve a name through the server's DNS client (default server: this-server)."""
    return _finalize_tool_result(
        _call(
            "resolve_dns",
            domain,
            record_type=record_type,
            server=server,
            protocol=protocol,
            dnssec=dnssec,
        )
    )


def get_settings() -> dict:
    """DNS server settings."""
    return _finalize_tool_result(_call("get_settings"))


def register(mcp):
    """Register all read tools with the FastMCP instance."""
    mcp.tool()(get_session_info)
    mcp.tool()(get_dashboard_stats)
    mcp.tool()(get_top_stats)
    mcp.tool()(list_zones)
    mcp.tool()(list_zone_records)
    mcp.tool()(list_cached_zones)
    mcp.tool()(list_allowed_zones)
    mcp.tool()(list_blocked_zones)
    mcp.tool()(list_logs)
    mcp.tool()(resolve_dns)
    mcp.tool()(get_settings)
