"""
technitiumdns-cli configuration: embedded defaults, the YAML user file, and
``TECHNITIUMDNS_CLI_*`` environment overrides.

This is the only module that reads the process environment. Loading never
raises: every fallback logs a record carrying an ``event`` field and the
lower-precedence value is kept.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import yaml

from technitium_cli._utils import _mask_token, parse_bool, parse_number
from technitium_cli.types import ConfigPatch

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "0.1.0"

ENV_PREFIX = "TECHNITIUMDNS_CLI_"
ENV_SEPARATOR = "__"
CONFIG_DIR_NAME = "technitiumdns-cli"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_TIMEOUT_MS = 15_000
OUTPUT_FORMATS = ("json", "table")
CONTRACT_SCHEMA_VERSION = "1.0"

_FILE_HEADER = (
    "# technitiumdns-cli configuration.\n"
    "# Stores credentials in cleartext; keep this file private (mode 0600).\n"
)

# ---------------------------------------------------------------------------
# Typed sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppSection:
    name: str
    version: str
    description: str


@dataclass(frozen=True)
class ApiSection:
    base_url: str
    timeout_ms: float
    verify_tls: bool


@dataclass
class AuthSection:
    """Credentials. ``token`` is updated in place after login / set-token."""

    username: str | None = None
    password: str | None = None
    token: str | None = None
    totp: str | None = None


@dataclass(frozen=True)
class CliSection:
    default_output_format: str
    pretty_print_json: bool
    colorize_json: bool


@dataclass
class Configuration:
    app: AppSection
    api: ApiSection
    auth: AuthSection
    cli: CliSection


DEFAULT_CONFIG = Configuration(
    app=AppSection(
        name="technitiumdns-cli",
        version=VERSION,
        description="Command-line client for the Technitium DNS Server HTTP API",
    ),
    api=ApiSection(
        base_url="http://localhost:5380",
        timeout_ms=DEFAULT_TIMEOUT_MS,
        verify_tls=True,
    ),
    auth=AuthSection(),
    cli=CliSection(
        default_output_format="json",
        pretty_print_json=True,
        colorize_json=True,
    ),
)

SECTIONS = ("app", "api", "auth", "cli")

# File key -> attribute, per section. File keys are camelCase.
_FILE_KEYS = {
    "app": {"name": "name", "version": "version", "description": "description"},
    "api": {"baseUrl": "base_url", "timeoutMs": "timeout_ms", "verifyTls": "verify_tls"},
    "auth": {"username": "username", "password": "password", "token": "token", "totp": "totp"},
    "cli": {
        "defaultOutputFormat": "default_output_format",
        "prettyPrintJson": "pretty_print_json",
        "colorizeJson": "colorize_json",
    },
}

# Upper-case env property -> attribute, per section.
_ENV_PROPERTIES = {
    "app": {"NAME": "name", "VERSION": "version", "DESCRIPTION": "description"},
    "api": {
        "BASEURL": "base_url",
        "BASE_URL": "base_url",
        "TIMEOUTMS": "timeout_ms",
        "TIMEOUT_MS": "timeout_ms",
        "VERIFYTLS": "verify_tls",
        "VERIFY_TLS": "verify_tls",
    },
    "auth": {"USERNAME": "username", "PASSWORD": "password", "TOKEN": "token", "TOTP": "totp"},
    "cli": {
        "DEFAULTOUTPUTFORMAT": "default_output_format",
        "DEFAULT_OUTPUT_FORMAT": "default_output_format",
        "PRETTYPRINTJSON": "pretty_print_json",
        "PRETTY_PRINT_JSON": "pretty_print_json",
        "COLORIZEJSON": "colorize_json",
        "COLORIZE_JSON": "colorize_json",
    },
}

_NUMERIC_FIELDS = {("api", "timeout_ms")}


# ---------------------------------------------------------------------------
# Per-section merges
# ---------------------------------------------------------------------------


def merge_app(base, patch=None):
    patch = patch or {}
    return AppSection(
        name=patch.get("name", base.name),
        version=patch.get("version", base.version),
        description=patch.get("description", base.description),
    )


def merge_api(base, patch=None):
    patch = patch or {}
    return ApiSection(
        base_url=patch.get("base_url", base.base_url),
        timeout_ms=patch.get("timeout_ms", base.timeout_ms),
        verify_tls=patch.get("verify_tls", base.verify_tls),
    )


def merge_auth(base, patch=None):
    """Always returns a new AuthSection so in-place token updates never leak."""
    patch = patch or {}
    return AuthSection(
        username=patch.get("username", base.username),
        password=patch.get("password", base.password),
        token=patch.get("token", base.token),
        totp=patch.get("totp", base.totp),
    )


def merge_cli(base, patch=None):
    patch = patch or {}
    return CliSection(
        default_output_format=patch.get("default_output_format", base.default_output_format),
        pretty_print_json=patch.get("pretty_print_json", base.pretty_print_json),
        colorize_json=patch.get("colorize_json", base.colorize_json),
    )


def merge_config(base, patch=None):
    """Apply one layer on top of *base*, section by section."""
    patch = patch or {}
    return Configuration(
        app=merge_app(base.app, patch.get("app")),
        api=merge_api(base.api, patch.get("api")),
        auth=merge_auth(base.auth, patch.get("auth")),
        cli=merge_cli(base.cli, patch.get("cli")),
    )


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def _parse_env_value(raw, default):
    """Parse an environment string using the type of *default*. Returns (ok, value)."""
    if isinstance(default, bool):
        parsed = parse_bool(raw)
        return parsed is not None, parsed
    if isinstance(default, (int, float)):
        parsed = parse_number(raw)
        return parsed is not None, parsed
    return True, raw


def coerce_env_value(raw, default):
    """Coerce an environment string using the type of *default*.

    Numbers and booleans that cannot be parsed fall back to *default*.
    """
    ok, value = _parse_env_value(raw, default)
    return value if ok else default


def _coerce_document_value(value, current):
    """Coerce a YAML scalar to the field's type. Returns (ok, value)."""
    if isinstance(current, bool):
        if isinstance(value, bool):
            return True, value
        if isinstance(value, str):
            parsed = parse_bool(value)
            return parsed is not None, parsed
        return False, None
    if isinstance(current, (int, float)):
        if isinstance(value, bool):
            return False, None
        parsed = parse_number(value) if isinstance(value, (int, float, str)) else None
        return parsed is not None, parsed
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return False, None
    return True, str(value)


def _field_is_valid(section, attr, value):
    if section == "cli" and attr == "default_output_format":
        return value in OUTPUT_FORMATS
    if section == "api" and attr == "timeout_ms":
        return value >= 0
    if section == "api" and attr == "base_url":
        return bool(value.strip())
    return True


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


def default_config_path(environ=None):
    """``$XDG_CONFIG_HOME/technitiumdns-cli/config.yaml`` (``~/.config`` fallback)."""
    environ = os.environ if environ is None else environ
    base = environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _read_document(path):
    """Read the YAML user file. Missing file -> {}. Raises on unreadable/invalid."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        document = yaml.safe_load(f)
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"expected a mapping at top level, got {type(document).__name__}")
    return document


def _document_patch(document, base, layer="file") -> ConfigPatch:
    """Validate a parsed YAML document into a ConfigPatch against *base*."""
    patch = {}
    for section, values in document.items():
        if section not in _FILE_KEYS:
            logger.debug(
                "Ignoring unknown config section %r",
                section,
                extra={"event": "config.unknown_section", "layer": layer, "section": section},
            )
            continue
        if values is None:
            continue
        if not isinstance(values, dict):
            logger.warning(
                "Config section %r must be a mapping; keeping previous values",
                section,
                extra={"event": "config.section_invalid", "layer": layer, "section": section},
            )
            continue
        current_section = getattr(base, section)
        section_patch = {}
        for key, value in values.items():
            attr = _FILE_KEYS[section].get(key)
            if attr is None:
                logger.debug(
                    "Ignoring unknown config key %s.%s",
                    section,
                    key,
                    extra={"event": "config.unknown_key", "layer": layer, "section": section},
                )
                continue
            if value is None:
                continue
            ok, coerced = _coerce_document_value(value, getattr(current_section, attr))
            if not ok or not _field_is_valid(section, attr, coerced):
                logger.warning(
                    "Invalid value for %s.%s in %s layer: %r; keeping %r",
                    section,
                    key,
                    layer,
                    value,
                    getattr(current_section, attr),
                    extra={
                        "event": "config.value_invalid",
                        "layer": layer,
                        "section": section,
                        "key": key,
                    },
                )
                continue
            section_patch[attr] = coerced
        if section_patch:
            patch[section] = section_patch
    return patch


def _env_patch(environ, base) -> ConfigPatch:
    """Collect ``TECHNITIUMDNS_CLI_SECTION__PROPERTY`` overrides into a ConfigPatch.

    Unknown section/property combinations are ignored (debug record only).
    """
    patch = {}
    for name in sorted(environ):
        if not name.startswith(ENV_PREFIX):
            continue
        section_name, sep, prop = name[len(ENV_PREFIX) :].partition(ENV_SEPARATOR)
        section = section_name.lower()
        attr = _ENV_PROPERTIES.get(section, {}).get(prop.upper()) if sep else None
        if attr is None:
            logger.debug(
                "Ignoring unrecognised environment variable %s",
                name,
                extra={"event": "config.env_ignored", "layer": "env", "variable": name},
            )
            continue
        raw = environ[name]
        current = getattr(getattr(base, section), attr)
        ok, value = _parse_env_value(raw, current)
        if not ok or not _field_is_valid(section, attr, value):
            logger.warning(
                "Invalid value for %s: %r; keeping %r",
                name,
                raw,
                current,
                extra={"event": "config.value_invalid", "layer": "env", "variable": name},
            )
            continue
        patch.setdefault(section, {})[attr] = value
    return patch


def ensure_config_file(path):
    """Create the user file from the embedded defaults on first run.

    Returns True if a file was created.
    """
    path = Path(path)
    try:
        if path.exists():
            return False
        write_config(DEFAULT_CONFIG, path)
    except OSError as e:
        logger.warning(
            "Could not create config file %s: %s",
            path,
            e,
            extra={"event": "config.create_failed", "layer": "file", "path": str(path)},
        )
        return False
    logger.info(
        "Created config file %s", path, extra={"event": "config.created", "path": str(path)}
    )
    return True


def load_persisted_config(path=None):
    """Defaults + user file only, no environment. Raises if the file is unreadable."""
    path = Path(path) if path else default_config_path()
    base = merge_config(DEFAULT_CONFIG)
    return merge_config(base, _document_patch(_read_document(path), base))


def resolve_config(path=None, environ=None):
    """Resolve the full configuration. Never raises."""
    environ = os.environ if environ is None else environ
    path = Path(path) if path else default_config_path(environ)

    configuration = merge_config(DEFAULT_CONFIG)
    ensure_config_file(path)
    try:
        document = _read_document(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning(
            "Could not read config file %s (%s); using defaults",
            path,
            e,
            extra={"event": "config.layer_fallback", "layer": "file", "path": str(path)},
        )
    else:
        configuration = merge_config(configuration, _document_patch(document, configuration))

    return merge_config(configuration, _env_patch(environ, configuration))


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _plain_number(value):
    """Render a numeric field without digit grouping."""
    if isinstance(value, str):
        parsed = parse_number(value)
        return value if parsed is None else parsed
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def config_to_document(configuration):
    """Build the YAML document for *configuration*, dropping None fields."""
    document = {}
    for section in SECTIONS:
        values = getattr(configuration, section)
        out = {}
        for key, attr in _FILE_KEYS[section].items():
            value = getattr(values, attr)
            if value is None:
                continue
            if (section, attr) in _NUMERIC_FIELDS:
                value = _plain_number(value)
            out[key] = value
        document[section] = out
    return document


def dump_config(configuration):
    return yaml.safe_dump(
        config_to_document(configuration),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def write_config(configuration, path):
    """Write *configuration* to *path* (atomic write-then-rename, owner-only)."""
    path = Path(path)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    text = _FILE_HEADER + dump_config(configuration)
    # Write to temp file then rename for crash-safety.
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=".config_tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on any failure.
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise
    # Restrict to owner-only on Unix/Mac. No-op on Windows.
    try:
        os.chmod(path, 0o600)
    except (OSError, NotImplementedError):
        pass


def update_stored_auth_token(token, path=None):
    """Persist ``auth.token`` to the user file. Returns False (and logs) on failure.

    Environment overrides are deliberately not re-applied, so they are never
    baked into the file.
    """
    path = Path(path) if path else default_config_path()
    try:
        persisted = load_persisted_config(path)
        persisted.auth.token = token or None
        write_config(persisted, path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.warning(
            "Could not save token to %s: %s",
            path,
            e,
            extra={"event": "config.token_persist_failed", "layer": "file", "path": str(path)},
        )
        return False
    logger.info(
        "Saved token %s to %s",
        _mask_token(token),
        path,
        extra={"event": "config.token_saved", "path": str(path)},
    )
    return True


def describe_config(configuration):
    """Config document safe for display: password hidden, token masked."""
    document = config_to_document(configuration)
    auth = document["auth"]
    if "password" in auth:
        auth["password"] = "***"
    if "token" in auth:
        auth["token"] = _mask_token(auth["token"])
    return document
