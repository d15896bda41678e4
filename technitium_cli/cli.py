"""
technitiumdns-cli — CLI tool for administering a Technitium DNS Server
"""

import argparse
import json
import logging
import math
import sys

from technitium_cli import config
from technitium_cli.client import create_client
from technitium_cli.commands import (
    cmd_allowed_add,
    cmd_allowed_delete,
    cmd_allowed_flush,
    cmd_allowed_list,
    cmd_auth_login,
    cmd_auth_logout,
    cmd_auth_session,
    cmd_auth_set_token,
    cmd_blocked_add,
    cmd_blocked_delete,
    cmd_blocked_flush,
    cmd_blocked_list,
    cmd_cache_delete,
    cmd_cache_flush,
    cmd_cache_list,
    cmd_call,
    cmd_config_path,
    cmd_config_show,
    cmd_dashboard_stats,
    cmd_dashboard_top,
    cmd_dns_resolve,
    cmd_endpoints,
    cmd_logs_delete,
    cmd_logs_download,
    cmd_logs_list,
    cmd_records_add,
    cmd_records_delete,
    cmd_records_list,
    cmd_records_update,
    cmd_settings_get,
    cmd_zones_create,
    cmd_zones_delete,
    cmd_zones_disable,
    cmd_zones_enable,
    cmd_zones_list,
)
from technitium_cli.exceptions import (
    ApiError,
    CliError,
    ConfigurationError,
    EndpointNotFoundError,
    HTTPError,
    RequestTimeoutError,
)
from technitium_cli.models import AUTH_MODES, RESPONSE_TYPES

HELP_TEXT = """\
Usage: technitiumdns-cli <command> [args...]

Global flags:
  --format json|table     Output format (default: cli.defaultOutputFormat, json)
  --config <path>         Config file (default: $XDG_CONFIG_HOME/technitiumdns-cli/config.yaml)
  --quiet, -q             Only log errors (-q after "call" is a query param)
  --verbose, -v           Log HTTP requests and config fallbacks to stderr
  --version               Show version number

Commands:
  auth login              - Log in and save the session token
    --username, --password, --totp   Credentials (default: auth section of the config)
    --include-info          Include user info in the response
    --no-save               Do not write the token to the config file
  auth logout             - Invalidate the session token
    --token <token>         Log out a specific token instead
  auth session            - Show the current session
  auth set-token <token>  - Use an existing API token (saved to the config file)
  zones list              - List zones (--page, --per-page)
  zones create <zone>     - Create a zone (--type Primary, -p key=value ...)
  zones delete <zone>     - Delete a zone (requires --confirm)
  zones enable|disable <zone>
  zones records list <domain>   - List records (--zone, --all)
  zones records add|update|delete <zone> <domain> --type <T> [--ttl N] [-p key=value ...]
  cache list [domain]     - Browse the DNS cache
  cache delete <domain>   - Remove a cached zone
  cache flush             - Flush the cache (requires --confirm)
  allowed|blocked list [domain]
  allowed|blocked add|delete <domain>
  allowed|blocked flush   - Remove every entry (requires --confirm)
  dashboard stats         - Dashboard statistics (--type LastHour|LastDay|...)
  dashboard top           - Top clients/domains (--stats-type, --type, --limit)
  logs list               - List server log files
  logs download <file>    - Print a log file (--output <path> to save)
  logs delete <file>      - Delete a log file
  dns resolve <domain>    - Resolve via the server's DNS client
    --type A  --server this-server  --protocol Udp  --dnssec
  settings get            - Show DNS server settings
  call <endpoint-id>      - Raw call to any catalog endpoint
    -q key=value            Query parameter (repeatable; repeated keys become lists)
    -H key=value            Header (repeatable)
    -X <method>             Override the HTTP method
    --body <json>           JSON request body
    --token <token>         Per-call token
    --auth auto|on|off      Token inclusion (default: endpoint setting)
    --response-type <t>     auto, json, text, bytes, stream
    --timeout-ms <n>        Per-call budget in milliseconds (0 disables)
  endpoints               - List catalog endpoint ids
  config show             - Show the resolved configuration (secrets masked)
  config path             - Print the config file path
"""

NO_CLIENT_COMMANDS = {"endpoints", "config"}


# ---------------------------------------------------------------------------
# Global flag extraction (before argparse, so --format works after subcommand)
# ---------------------------------------------------------------------------


def _extract_global_flags(argv):
    """Extract global flags from argv regardless of position.

    Returns (format_str, quiet, verbose, config_path, remaining_argv).
    format_str is None when --format was not given. Handles --version directly.
    """
    fmt = None
    quiet = False
    verbose = False
    config_path = None
    remaining = []
    i = 0
    while i < len(argv):
        if argv[i] == "--version":
            print(f"technitiumdns-cli {config.VERSION}")
            sys.exit(0)
        elif argv[i] == "--quiet" or (argv[i] == "-q" and remaining[:1] != ["call"]):
            # After 'call', -q is the query option.
            quiet = True
            i += 1
            continue
        elif argv[i] in ("--verbose", "-v"):
            verbose = True
            i += 1
            continue
        elif argv[i] == "--format" and i + 1 < len(argv):
            fmt = argv[i + 1]
            if fmt not in config.OUTPUT_FORMATS:
                raise CliError(
                    f"[ERROR] Invalid format '{fmt}'. Use: {', '.join(config.OUTPUT_FORMATS)}"
                )
            i += 2
            continue
        elif argv[i] == "--config" and i + 1 < len(argv):
            config_path = argv[i + 1]
            i += 2
            continue
        else:
            remaining.append(argv[i])
        i += 1
    if quiet and verbose:
        raise CliError("[ERROR] --quiet and --verbose are mutually exclusive.")
    return fmt, quiet, verbose, config_path, remaining


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _SubcommandParser(argparse.ArgumentParser):
    """Subparser that raises CliError instead of printing full help text."""

    def error(self, message):
        raise CliError(f"[ERROR] {message}")


def _non_negative_number(value):
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a non-negative number") from exc
    if parsed < 0 or not math.isfinite(parsed):
        raise argparse.ArgumentTypeError("must be a non-negative number")
    return int(parsed) if parsed.is_integer() else parsed


def _positive_int(value):
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a positive integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return parsed


def _add_param_option(p):
    p.add_argument(
        "-p", "--param", action="append", default=[], metavar="KEY=VALUE", dest="param"
    )


def _add_group(sub, name):
    """Add a command group whose subcommands are stored in ``<name>_command``."""
    p = sub.add_parser(name)
    p.set_defaults(func=None)
    return p.add_subparsers(dest=f"{name}_command", parser_class=_SubcommandParser)


def _add_zone_tree_group(sub, name, handlers):
    list_cmd, add_cmd, delete_cmd, flush_cmd = handlers
    group = _add_group(sub, name)
    p = group.add_parser("list")
    p.add_argument("domain", nargs="?")
    p.set_defaults(func=list_cmd)
    p = group.add_parser("add")
    p.add_argument("domain")
    p.set_defaults(func=add_cmd)
    p = group.add_parser("delete")
    p.add_argument("domain")
    p.set_defaults(func=delete_cmd)
    p = group.add_parser("flush")
    p.add_argument("--confirm", action="store_true")
    p.set_defaults(func=flush_cmd)


def build_parser():
    parser = _SubcommandParser(
        prog="technitiumdns-cli",
        description="CLI tool for administering a Technitium DNS Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("--help", "-h", action="store_true", dest="show_help")
    sub = parser.add_subparsers(dest="command", parser_class=_SubcommandParser)

    # --- auth ---
    auth = _add_group(sub, "auth")
    p = auth.add_parser("login")
    p.add_argument("--username", "-u")
    p.add_argument("--password")
    p.add_argument("--totp")
    p.add_argument("--include-info", action="store_true", dest="include_info")
    p.add_argument("--no-save", action="store_true", dest="no_save")
    p.set_defaults(func=cmd_auth_login)
    p = auth.add_parser("logout")
    p.add_argument("--token")
    p.set_defaults(func=cmd_auth_logout)
    auth.add_parser("session").set_defaults(func=cmd_auth_session)
    p = auth.add_parser("set-token")
    p.add_argument("token")
    p.add_argument("--no-save", action="store_true", dest="no_save")
    p.set_defaults(func=cmd_auth_set_token)

    # --- zones ---
    zones = _add_group(sub, "zones")
    p = zones.add_parser("list")
    p.add_argument("--page", type=_positive_int)
    p.add_argument("--per-page", type=_positive_int, dest="per_page")
    p.set_defaults(func=cmd_zones_list)
    p = zones.add_parser("create")
    p.add_argument("zone")
    p.add_argument("--type")
    _add_param_option(p)
    p.set_defaults(func=cmd_zones_create)
    p = zones.add_parser("delete")
    p.add_argument("zone")
    p.add_argument("--node")
    p.add_argument("--confirm", action="store_true")
    p.set_defaults(func=cmd_zones_delete)
    for name, handler in (("enable", cmd_zones_enable), ("disable", cmd_zones_disable)):
        p = zones.add_parser(name)
        p.add_argument("zone")
        p.add_argument("--node")
        p.set_defaults(func=handler)

    # --- zones records ---
    p = zones.add_parser("records")
    p.set_defaults(func=None)
    records = p.add_subparsers(dest="records_command", parser_class=_SubcommandParser)
    p = records.add_parser("list")
    p.add_argument("domain")
    p.add_argument("--zone")
    p.add_argument("--all", action="store_true", help="List every record in the zone")
    p.add_argument("--node")
    p.set_defaults(func=cmd_records_list)
    for name, handler in (
        ("add", cmd_records_add),
        ("update", cmd_records_update),
        ("delete", cmd_records_delete),
    ):
        p = records.add_parser(name)
        p.add_argument("zone")
        p.add_argument("domain")
        p.add_argument("--type", required=True)
        p.add_argument("--ttl", type=_positive_int)
        _add_param_option(p)
        p.set_defaults(func=handler)

    # --- cache ---
    cache = _add_group(sub, "cache")
    p = cache.add_parser("list")
    p.add_argument("domain", nargs="?")
    p.set_defaults(func=cmd_cache_list)
    p = cache.add_parser("delete")
    p.add_argument("domain")
    p.set_defaults(func=cmd_cache_delete)
    p = cache.add_parser("flush")
    p.add_argument("--confirm", action="store_true")
    p.set_defaults(func=cmd_cache_flush)

    # --- allowed / blocked ---
    _add_zone_tree_group(
        sub, "allowed", (cmd_allowed_list, cmd_allowed_add, cmd_allowed_delete, cmd_allowed_flush)
    )
    _add_zone_tree_group(
        sub, "blocked", (cmd_blocked_list, cmd_blocked_add, cmd_blocked_delete, cmd_blocked_flush)
    )

    # --- dashboard ---
    dashboard = _add_group(sub, "dashboard")
    p = dashboard.add_parser("stats")
    p.add_argument("--type")
    p.add_argument("--local-time", action="store_true", dest="local_time")
    p.set_defaults(func=cmd_dashboard_stats)
    p = dashboard.add_parser("top")
    p.add_argument("--stats-type", dest="stats_type")
    p.add_argument("--type")
    p.add_argument("--limit", type=_positive_int)
    p.set_defaults(func=cmd_dashboard_top)

    # --- logs ---
    logs = _add_group(sub, "logs")
    logs.add_parser("list").set_defaults(func=cmd_logs_list)
    p = logs.add_parser("download")
    p.add_argument("file_name")
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_logs_download)
    p = logs.add_parser("delete")
    p.add_argument("file_name")
    p.set_defaults(func=cmd_logs_delete)

    # --- dns ---
    dns = _add_group(sub, "dns")
    p = dns.add_parser("resolve")
    p.add_argument("domain")
    p.add_argument("--type")
    p.add_argument("--server")
    p.add_argument("--protocol")
    p.add_argument("--dnssec", action="store_true")
    p.set_defaults(func=cmd_dns_resolve)

    # --- settings ---
    settings = _add_group(sub, "settings")
    settings.add_parser("get").set_defaults(func=cmd_settings_get)

    # --- call ---
    p = sub.add_parser("call")
    p.add_argument("endpoint_id")
    p.add_argument("-q", "--query", action="append", default=[], metavar="KEY=VALUE")
    p.add_argument("-H", "--header", action="append", default=[], metavar="KEY=VALUE")
    p.add_argument("-X", "--method")
    p.add_argument("--body")
    p.add_argument("--token")
    p.add_argument("--auth", choices=sorted(AUTH_MODES), default="auto")
    p.add_argument("--response-type", choices=RESPONSE_TYPES, default="auto", dest="response_type")
    p.add_argument("--timeout-ms", type=_non_negative_number, dest="timeout_ms")
    p.set_defaults(func=cmd_call)

    # --- endpoints ---
    sub.add_parser("endpoints").set_defaults(func=cmd_endpoints)

    # --- config ---
    cfg = _add_group(sub, "config")
    cfg.add_parser("show").set_defaults(func=cmd_config_show)
    cfg.add_parser("path").set_defaults(func=cmd_config_path)

    return parser


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def _configure_logging(quiet=False, verbose=False):
    """Send package logs to stderr: WARNING by default, DEBUG/ERROR on -v/-q."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logger = logging.getLogger("technitium_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


def _error_type(err):
    if isinstance(err, ConfigurationError):
        return "configuration_error"
    if isinstance(err, EndpointNotFoundError):
        return "endpoint_not_found"
    if isinstance(err, HTTPError):
        return "http_error"
    if isinstance(err, ApiError):
        return "api_error"
    if isinstance(err, RequestTimeoutError):
        return "cancelled" if err.cancelled else "timeout"
    return "error"


def _error_detail(err):
    detail = {}
    for attr in ("endpoint_id", "status_code", "status", "timeout_ms", "known_ids"):
        value = getattr(err, attr, None)
        if value is not None:
            detail[attr] = value
    return detail


def _emit_cli_error(err, fmt):
    msg = str(err)
    if not msg.startswith("["):
        msg = f"[ERROR] {msg}"
    if fmt == "json":
        payload = {
            "ok": False,
            "schema_version": config.CONTRACT_SCHEMA_VERSION,
            "error": {
                "type": _error_type(err),
                "message": msg,
                "exit_code": getattr(err, "exit_code", 1),
                **_error_detail(err),
            },
        }
        print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)
        return
    print(msg, file=sys.stderr)
    if isinstance(err, EndpointNotFoundError) and err.known_ids:
        print("Known endpoint ids:", file=sys.stderr)
        for endpoint_id in err.known_ids:
            print(f"  {endpoint_id}", file=sys.stderr)


def _command_path(ns):
    """Selected command words, e.g. 'zones records' for a bare 'zones records'."""
    parts = [ns.command]
    chosen = getattr(ns, f"{ns.command}_command", None)
    if chosen:
        parts.append(chosen)
        nested = getattr(ns, f"{chosen}_command", None)
        if nested:
            parts.append(nested)
    return " ".join(parts)


def main(argv=None):
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")

    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        print(HELP_TEXT)
        sys.exit(0)

    fmt = "json"
    try:
        # Extract global flags from anywhere in argv
        flag_fmt, quiet, verbose, config_path, remaining_argv = _extract_global_flags(argv)
        fmt = flag_fmt or fmt
        _configure_logging(quiet, verbose)

        if not remaining_argv:
            print(HELP_TEXT)
            sys.exit(0)

        parser = build_parser()
        ns = parser.parse_args(remaining_argv)

        if ns.show_help or not ns.command:
            print(HELP_TEXT)
            sys.exit(0)

        handler = getattr(ns, "func", None)
        if handler is None:
            raise CliError(
                f"[ERROR] Missing subcommand for '{_command_path(ns)}'. See --help."
            )

        ns.config_path = config.default_config_path() if config_path is None else config_path
        ns.config = config.resolve_config(ns.config_path)
        fmt = flag_fmt or ns.config.cli.default_output_format
        ns.format = fmt
        ns.client = None
        if ns.command not in NO_CLIENT_COMMANDS:
            ns.client = create_client(ns.config)

        handler(ns)

    except CliError as e:
        _emit_cli_error(e, fmt)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
