"""Core output dispatchers: JSON (plain or rich-colorized), tables, raw bytes."""

import json
import sys

from rich.console import Console

from technitium_cli.api import HttpResponse


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)


def render_json(data, pretty=True):
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=_json_default)


def pretty_print(data, settings=None):
    """Print *data* as JSON honoring the ``cli`` config section."""
    pretty = settings.pretty_print_json if settings is not None else True
    colorize = settings.colorize_json if settings is not None else False
    text = render_json(data, pretty)
    if colorize and sys.stdout.isatty():
        Console().print_json(text, indent=2 if pretty else None)
        return
    print(text)


def write_raw(data):
    """Write a text or binary payload unchanged."""
    if isinstance(data, HttpResponse):
        try:
            for chunk in data.iter_chunks():
                _write_bytes(chunk)
        finally:
            data.close()
        return
    if isinstance(data, (bytes, bytearray, memoryview)):
        _write_bytes(bytes(data))
        return
    sys.stdout.write(data)
    if data and not data.endswith("\n"):
        sys.stdout.write("\n")


def _write_bytes(chunk):
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(chunk.decode("utf-8", errors="replace"))
        return
    sys.stdout.flush()
    buffer.write(chunk)
    buffer.flush()


def output(data, formatter=None, fmt="json", settings=None):
    """Output data in requested format.

    Raw payloads (text, bytes, open streams) are written as-is in every format.
    """
    if isinstance(data, (str, bytes, bytearray, memoryview, HttpResponse)):
        write_raw(data)
    elif fmt == "table" and formatter:
        print(formatter(data))
    else:
        pretty_print(data, settings)


def mutation_response(action, target=None, data=None, fmt="json", settings=None):
    """Print a mutation confirmation."""
    if fmt == "json":
        payload = {"ok": True, "action": action}
        if target:
            payload["target"] = target
        if data not in (None, {}, True):
            payload["data"] = data
        pretty_print(payload, settings)
        return
    summary = f"{action}: {target}" if target else action
    print(f"OK: {summary}")
