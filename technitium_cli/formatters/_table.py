"""Low-level table rendering helpers (stdlib only)."""

import re

_CONTROL_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_MAX_COLUMN_WIDTH = 48


def _trunc(s, maxlen):
    """Truncate string with ellipsis indicator."""
    if not s:
        return ""
    return s[: maxlen - 1] + "…" if len(s) > maxlen else s


def _sanitize_str(s):
    """Strip ANSI escape sequences and control chars from server-supplied text.
    Preserves newlines (\\n) and tabs (\\t)."""
    if not s:
        return s
    return _CONTROL_RE.sub("", str(s))


def _cell(value):
    """Render one table cell: booleans as yes/no, None as '-'."""
    if value is None or value == "":
        return "-"
    if value is True:
        return "yes"
    if value is False:
        return "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(_cell(v) for v in value) or "-"
    if isinstance(value, dict):
        return ", ".join(f"{k}={_cell(v)}" for k, v in value.items()) or "-"
    return _sanitize_str(str(value))


def _table(columns, rows, footer=None):
    """Build a formatted table string.

    columns: list of column names. Widths fit the widest cell, capped at
    48 characters; the last column is never padded or truncated.
    rows: iterables of raw values, one per column.
    footer: optional footer line."""
    cells = [[_cell(v) for v in row] for row in rows]
    widths = []
    for i, name in enumerate(columns):
        widest = max([len(name)] + [len(r[i]) for r in cells])
        widths.append(min(widest, _MAX_COLUMN_WIDTH))

    def _line(values):
        parts = []
        for i, val in enumerate(values):
            if i == len(columns) - 1:
                parts.append(val)
            else:
                parts.append(f"{_trunc(val, widths[i]):<{widths[i]}}")
        return "  ".join(parts).rstrip()

    header = _line(list(columns))
    lines = [header, "-" * max(len(header), 40)]
    lines.extend(_line(r) for r in cells)
    if not cells:
        lines.append("(none)")
    if footer:
        lines.append(f"\n{footer}")
    return "\n".join(lines)


def _key_value_table(pairs, footer=None):
    """Two-column Field/Value table from (key, value) pairs."""
    return _table(["Field", "Value"], [(k, v) for k, v in pairs], footer=footer)
