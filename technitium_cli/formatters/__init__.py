"""Output formatting package for technitiumdns-cli.

Re-exports all public names so consumers can do:
    from technitium_cli.formatters import format_zones_table
"""

from technitium_cli.formatters._core import (
    mutation_response,
    output,
    pretty_print,
    render_json,
    write_raw,
)
from technitium_cli.formatters._dns import (
    format_endpoints_table,
    format_logs_table,
    format_mapping_table,
    format_records_table,
    format_resolve_table,
    format_session_table,
    format_stats_table,
    format_top_stats_table,
    format_zone_tree_table,
    format_zones_table,
)
from technitium_cli.formatters._table import (
    _CONTROL_RE,
    _cell,
    _key_value_table,
    _sanitize_str,
    _table,
    _trunc,
)

__all__ = [
    "_CONTROL_RE",
    "_cell",
    "_key_value_table",
    "_sanitize_str",
    "_table",
    "_trunc",
    "format_endpoints_table",
    "format_logs_table",
    "format_mapping_table",
    "format_records_table",
    "format_resolve_table",
    "format_session_table",
    "format_stats_table",
    "format_top_stats_table",
    "format_zone_tree_table",
    "format_zones_table",
    "mutation_response",
    "output",
    "pretty_print",
    "render_json",
    "write_raw",
]
