"""Core helpers: client caching, _call dispatcher, response contract."""

from __future__ import annotations

from technitium_cli import CliError, TechnitiumClient, create_client
from technitium_cli.config import CONTRACT_SCHEMA_VERSION, resolve_config
from technitium_cli.exceptions import (
    ApiError,
    ConfigurationError,
    EndpointNotFoundError,
    HTTPError,
    RequestTimeoutError,
)

_client: TechnitiumClient | None = None


def _get_client() -> TechnitiumClient:
    """Return a cached TechnitiumClient built from the resolved config."""
    global _client
    if _client is None:
        _client = create_client(resolve_config())
    return _client


def _contract_error(message: str, error_type: str = "error", **detail) -> dict:
    """Return a stable MCP error envelope."""
    return {
        "ok": False,
        "schema_version": CONTRACT_SCHEMA_VERSION,
        "error": message,
        "error_detail": {"type": error_type, "message": message, **detail},
    }


def _finalize_tool_result(result):
    """Wrap non-dict results and stamp dicts with ok/schema_version."""
    if isinstance(result, dict):
        out = dict(result)
        out.setdefault("schema_version", CONTRACT_SCHEMA_VERSION)
        out.setdefault("ok", True)
        return out
    return {"ok": True, "schema_version": CONTRACT_SCHEMA_VERSION, "data": result}


_ALLOWED_METHODS = {
    "call",
    "get_session_info",
    "get_dashboard_stats",
    "get_top_stats",
    "list_zones",
    "create_zone",
    "delete_zone",
    "enable_zone",
    "disable_zone",
    "list_zone_records",
    "add_zone_record",
    "update_zone_record",
    "delete_zone_record",
    "list_cached_zones",
    "flush_cache",
    "delete_cached_zone",
    "list_allowed_zones",
    "allow_zone",
    "delete_allowed_zone",
    "list_blocked_zones",
    "block_zone",
    "delete_blocked_zone",
    "list_logs",
    "resolve_dns",
    "get_settings",
}


def _call(method_name: str, *args, **kwargs):
    """Call a TechnitiumClient method, converting exceptions to error dicts."""
    if method_name not in _ALLOWED_METHODS:
        return _contract_error(f"Unknown method: {method_name}", "error")
    try:
        client = _get_client()
        result = getattr(client, method_name)(*args, **kwargs)
    except ConfigurationError as e:
        return _contract_error(str(e), "configuration")
    except EndpointNotFoundError as e:
        return _contract_error(str(e), "endpoint_not_found", known_ids=e.known_ids)
    except HTTPError as e:
        return _contract_error(str(e), "http", status_code=e.status_code)
    except ApiError as e:
        return _contract_error(str(e), "api", status=e.status)
    except RequestTimeoutError as e:
        return _contract_error(str(e), "timeout", timeout_ms=e.timeout_ms)
    except CliError as e:
        return _contract_error(str(e), "error")
    except Exception as e:
        return _contract_error(f"Unexpected error: {e}", "error")
    if method_name == "call":
        return result.data
    return result
