"""
Shared pure-utility functions for technitiumdns-cli.

These helpers have no business logic and no side effects.
They are used across config.py, client.py, api.py, and commands.py.
"""

import math
import re

from technitium_cli.exceptions import CliError

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})

# Underscores or commas sitting between two digits: "15_000", "15,000".
_DIGIT_GROUPING_RE = re.compile(r"(?<=\d)[_,](?=\d)")


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    if not token:
        return ""
    return token[:6] + "..." if len(token) > 6 else token


def strip_digit_grouping(text):
    """Remove decimal digit grouping so the literal parses as a plain number."""
    return _DIGIT_GROUPING_RE.sub("", text.strip())


def parse_number(raw):
    """Parse a numeric string. Returns int, float, or None when not a finite number."""
    cleaned = strip_digit_grouping(str(raw))
    if not cleaned:
        return None
    try:
        return int(cleaned)
    except ValueError:
        pass
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def parse_bool(raw):
    """Parse common boolean words. Returns None for anything unrecognised."""
    word = str(raw).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def _parse_primitive(value):
    """Turn a CLI string into bool/int/float where it clearly is one."""
    trimmed = value.strip()
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False
    if trimmed:
        try:
            return int(trimmed)
        except ValueError:
            pass
        try:
            number = float(trimmed)
        except ValueError:
            return value
        if math.isfinite(number):
            return number
    return value


def _collect_key_value(items, context="parameter"):
    """Collect ``key=value`` strings into a dict; repeated keys become lists.

    A bare ``key`` (no ``=``) is recorded as ``"true"``.
    """
    collected = {}
    for item in items or []:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not key:
            raise CliError(f"[ERROR] Invalid {context} '{item}'. Use key=value.")
        if not sep:
            raw = "true"
        existing = collected.get(key)
        if existing is None:
            collected[key] = raw
        elif isinstance(existing, list):
            existing.append(raw)
        else:
            collected[key] = [existing, raw]
    return collected
