"""MCP server exposing TechnitiumClient methods as tools.

Package structure:
  __init__.py       — FastMCP init, register() calls, re-exports
  __main__.py       — ``python -m technitium_cli.mcp_server`` entry point
  _core.py          — Client caching, _call dispatcher, response contract
  _tools_read.py    — session, dashboard, zone and list browsing tools
  _tools_write.py   — zone/record mutations, cache and list edits, raw calls

Run: python -m technitium_cli.mcp_server
Requires: pip install .[mcp]
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from technitium_cli.mcp_server import _tools_read, _tools_write

mcp = FastMCP(
    "technitium",
    instructions=(
        "Technitium DNS Server administration tools. "
        "Credentials come from the technitiumdns-cli config file or "
        "TECHNITIUMDNS_CLI_* environment variables. "
        "Errors are returned as {ok: false, error, error_detail}. "
        "Use call_endpoint for operations without a dedicated tool."
    ),
)

for _mod in [_tools_read, _tools_write]:
    _mod.register(mcp)

# ---------------------------------------------------------------------------
# Re-exports (tests import via mcp_mod.xxx)
# ---------------------------------------------------------------------------

from technitium_cli.mcp_server._core import (  # noqa: E402, F401
    _call,
    _contract_error,
    _finalize_tool_result,
    _get_client,
)
from technitium_cli.mcp_server._tools_read import (  # noqa: E402, F401
    get_dashboard_stats,
    get_session_info,
    get_settings,
    get_top_stats,
    list_allowed_zones,
    list_blocked_zones,
    list_cached_zones,
    list_logs,
    list_zone_records,
    list_zones,
    resolve_dns,
)
from technitium_cli.mcp_server._tools_write import (  # noqa: E402, F401
    add_zone_record,
    allow_zone,
    block_zone,
    call_endpoint,
    create_zone,
    delete_allowed_zone,
    delete_blocked_zone,
    delete_cached_zone,
    delete_zone,
    delete_zone_record,
    flush_cache,
    set_zone_enabled,
    update_zone_record,
)


def main():
    """Run the MCP server (stdio transport)."""
    mcp.run()
