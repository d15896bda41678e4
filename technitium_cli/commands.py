"""
Command implementations for technitiumdns-cli.
Each cmd_*() function receives an argparse.Namespace and handles one CLI command.

Business logic lives in client.py (TechnitiumClient). These thin wrappers
handle argparse → keyword args, format selection, and formatter dispatch.
``cli.main()`` injects ``ns.client``, ``ns.config``, ``ns.config_path`` and
``ns.format`` before a handler runs.
"""

from pathlib import Path

from technitium_cli import config
from technitium_cli._utils import _collect_key_value, _mask_token, _parse_primitive
from technitium_cli.endpoints import CATALOG
from technitium_cli.exceptions import CliError
from technitium_cli.formatters import (
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
    mutation_response,
    output,
    pretty_print,
)
from technitium_cli.models import CallSpec

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(ns):
    return ns.config.cli


def _out(ns, data, formatter=format_mapping_table):
    output(data, formatter, ns.format, _settings(ns))


def _done(ns, action, target=None, data=None):
    mutation_response(action, target, data, ns.format, _settings(ns))


def _params(items):
    """``-p key=value`` pairs as a query dict with typed scalar values."""
    params = {}
    for key, value in _collect_key_value(items, "parameter").items():
        if isinstance(value, list):
            params[key] = [_parse_primitive(v) for v in value]
        else:
            params[key] = _parse_primitive(value)
    return params


def _require_confirm(ns, action):
    if not getattr(ns, "confirm", False):
        raise CliError(f"[ERROR] {action} requires --confirm flag.")


def _remember_token(ns, token):
    """Persist *token* to the user config file and mirror it into ns.config.

    Returns True when the file was updated.
    """
    saved = config.update_stored_auth_token(token, ns.config_path)
    if saved:
        ns.config.auth.token = token or None
    return saved


def _mask_session(data):
    if isinstance(data, dict) and data.get("token"):
        data = dict(data)
        data["token"] = _mask_token(data["token"])
    return data


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


def cmd_auth_login(ns):
    data = ns.client.login(
        ns.username, ns.password, ns.totp, include_info=getattr(ns, "include_info", False)
    )
    saved = False if ns.no_save else _remember_token(ns, data["token"])
    result = _mask_session(data)
    result["saved"] = saved
    _out(ns, result, format_session_table)


def cmd_auth_logout(ns):
    ns.client.logout(ns.token)
    saved = False
    if not ns.token:
        saved = _remember_token(ns, None)
    _done(ns, "Logged out", data={"token_cleared": saved} if saved else None)


def cmd_auth_session(ns):
    _out(ns, _mask_session(ns.client.get_session_info()), format_session_table)


def cmd_auth_set_token(ns):
    token = (ns.token or "").strip()
    if not token:
        raise CliError("[ERROR] Token cannot be empty.")
    ns.client.set_session_token(token, "explicit")
    saved = False if ns.no_save else _remember_token(ns, token)
    _done(ns, "Token set", _mask_token(token), {"saved": saved})


# ---------------------------------------------------------------------------
# zones
# ---------------------------------------------------------------------------


def cmd_zones_list(ns):
    query = {"pageNumber": ns.page, "zonesPerPage": ns.per_page}
    _out(ns, ns.client.list_zones(query), format_zones_table)


def cmd_zones_create(ns):
    data = ns.client.create_zone(ns.zone, ns.type, **_params(ns.param))
    _done(ns, "Created zone", ns.zone, data)


def cmd_zones_delete(ns):
    _require_confirm(ns, f"Deleting zone '{ns.zone}'")
    _done(ns, "Deleted zone", ns.zone, ns.client.delete_zone(ns.zone, ns.node))


def cmd_zones_enable(ns):
    _done(ns, "Enabled zone", ns.zone, ns.client.enable_zone(ns.zone, ns.node))


def cmd_zones_disable(ns):
    _done(ns, "Disabled zone", ns.zone, ns.client.disable_zone(ns.zone, ns.node))


# ---------------------------------------------------------------------------
# zones records
# ---------------------------------------------------------------------------


def _record_query(ns):
    query = {"zone": ns.zone, "domain": ns.domain, "type": ns.type}
    if getattr(ns, "ttl", None) is not None:
        query["ttl"] = ns.ttl
    query.update(_params(ns.param))
    return query


def cmd_records_list(ns):
    data = ns.client.list_zone_records(ns.zone, ns.domain, list_zone=ns.all, node=ns.node)
    _out(ns, data, format_records_table)


def cmd_records_add(ns):
    data = ns.client.add_zone_record(_record_query(ns))
    _done(ns, f"Added {ns.type} record", ns.domain, data)


def cmd_records_update(ns):
    data = ns.client.update_zone_record(_record_query(ns))
    _done(ns, f"Updated {ns.type} record", ns.domain, data)


def cmd_records_delete(ns):
    data = ns.client.delete_zone_record(_record_query(ns))
    _done(ns, f"Deleted {ns.type} record", ns.domain, data)


# ---------------------------------------------------------------------------
# cache / allowed / blocked
# ---------------------------------------------------------------------------


def cmd_cache_list(ns):
    query = {"domain": ns.domain} if ns.domain else None
    _out(ns, ns.client.list_cached_zones(query), format_zone_tree_table)


def cmd_cache_flush(ns):
    _require_confirm(ns, "Flushing the DNS cache")
    _done(ns, "Flushed cache", data=ns.client.flush_cache())


def cmd_cache_delete(ns):
    _done(ns, "Deleted cached zone", ns.domain, ns.client.delete_cached_zone(ns.domain))


def cmd_allowed_list(ns):
    query = {"domain": ns.domain} if ns.domain else None
    _out(ns, ns.client.list_allowed_zones(query), format_zone_tree_table)


def cmd_allowed_add(ns):
    _done(ns, "Allowed", ns.domain, ns.client.allow_zone(ns.domain))


def cmd_allowed_delete(ns):
    _done(ns, "Removed allowed zone", ns.domain, ns.client.delete_allowed_zone(ns.domain))


def cmd_allowed_flush(ns):
    _require_confirm(ns, "Flushing all allowed zones")
    _done(ns, "Flushed allowed zones", data=ns.client.flush_allowed_zones())


def cmd_blocked_list(ns):
    query = {"domain": ns.domain} if ns.domain else None
    _out(ns, ns.client.list_blocked_zones(query), format_zone_tree_table)


def cmd_blocked_add(ns):
    _done(ns, "Blocked", ns.domain, ns.client.block_zone(ns.domain))


def cmd_blocked_delete(ns):
    _done(ns, "Removed blocked zone", ns.domain, ns.client.delete_blocked_zone(ns.domain))


def cmd_blocked_flush(ns):
    _require_confirm(ns, "Flushing all blocked zones")
    _done(ns, "Flushed blocked zones", data=ns.client.flush_blocked_zones())


# ---------------------------------------------------------------------------
# dashboard / logs / dns / settings
# ---------------------------------------------------------------------------


def cmd_dashboard_stats(ns):
    query = {"type": ns.type, "utc": False if ns.local_time else None}
    _out(ns, ns.client.get_dashboard_stats(query), format_stats_table)


def cmd_dashboard_top(ns):
    data = ns.client.get_top_stats(stats_type=ns.stats_type, period=ns.type, limit=ns.limit)
    _out(ns, data, format_top_stats_table)


def cmd_logs_list(ns):
    _out(ns, ns.client.list_logs(), format_logs_table)


def cmd_logs_download(ns):
    text = ns.client.download_log(ns.file_name)
    if not ns.output:
        output(text)
        return
    path = Path(ns.output)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise CliError(f"[ERROR] Cannot write {path}: {e}") from e
    _done(ns, "Saved log", str(path), {"bytes": len(text.encode("utf-8"))})


def cmd_logs_delete(ns):
    _done(ns, "Deleted log", ns.file_name, ns.client.delete_log(ns.file_name))


def cmd_dns_resolve(ns):
    data = ns.client.resolve_dns(
        ns.domain,
        record_type=ns.type,
        server=ns.server,
        protocol=ns.protocol,
        dnssec=ns.dnssec,
    )
    _out(ns, data, format_resolve_table)


def cmd_settings_get(ns):
    _out(ns, ns.client.get_settings())


# ---------------------------------------------------------------------------
# Raw access and discovery
# ---------------------------------------------------------------------------


def cmd_call(ns):
    spec = CallSpec.from_namespace(ns)
    result = ns.client.call(spec.endpoint_id, spec.options)
    _out(ns, result.data)


def cmd_endpoints(ns):
    rows = [
        {
            "id": e.id,
            "method": e.method,
            "path": e.path,
            "requires_token": e.requires_token,
            "description": e.description,
        }
        for e in sorted(CATALOG.values(), key=lambda e: e.id)
    ]
    _out(ns, rows, format_endpoints_table)


def cmd_config_show(ns):
    document = config.describe_config(ns.config)
    if ns.format == "table":
        lines = [f"# {ns.config_path}"]
        for section, values in document.items():
            lines.append(f"{section}:")
            lines.extend(f"  {key}: {value}" for key, value in values.items())
        print("\n".join(lines))
        return
    pretty_print({"path": str(ns.config_path), "config": document}, _settings(ns))


def cmd_config_path(ns):
    print(ns.config_path)
