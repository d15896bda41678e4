"""technitiumdns-cli — typed client and CLI for the Technitium DNS Server admin API."""

from technitium_cli.api import Cancellation
from technitium_cli.client import TechnitiumClient, create_client
from technitium_cli.config import VERSION, Configuration, resolve_config
from technitium_cli.endpoints import EndpointDefinition, get_endpoint_definition, list_endpoint_ids
from technitium_cli.exceptions import (
    ApiError,
    CliError,
    ConfigurationError,
    EndpointNotFoundError,
    HTTPError,
    RequestTimeoutError,
)
from technitium_cli.models import ApiCallOptions, ApiCallResult, SessionTokenSnapshot
from technitium_cli.types import (
    DashboardStats,
    DnsResolveResult,
    Envelope,
    LogList,
    SessionInfo,
    ZoneList,
    ZoneRecordList,
    ZoneTree,
)

__all__ = [
    "VERSION",
    "ApiCallOptions",
    "ApiCallResult",
    "ApiError",
    "Cancellation",
    "CliError",
    "Configuration",
    "ConfigurationError",
    "DashboardStats",
    "DnsResolveResult",
    "EndpointDefinition",
    "EndpointNotFoundError",
    "Envelope",
    "HTTPError",
    "LogList",
    "RequestTimeoutError",
    "SessionInfo",
    "SessionTokenSnapshot",
    "TechnitiumClient",
    "ZoneList",
    "ZoneRecordList",
    "ZoneTree",
    "create_client",
    "get_endpoint_definition",
    "list_endpoint_ids",
    "resolve_config",
]
