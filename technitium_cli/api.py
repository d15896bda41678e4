"""
HTTP transport layer, cancellation signal, and log-safety helpers for technitiumdns-cli.
"""

import io
import json
import logging
import re
import ssl
import threading
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_SENSITIVE_QUERY_KEYS = frozenset({"token", "pass", "password", "totp"})
_CHARSET_RE = re.compile(r"charset=([\w.-]+)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Log-safety helpers
# ---------------------------------------------------------------------------


def _sanitize_url_for_log(url):
    """Mask sensitive query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = []
    for key, value in pairs:
        if key.lower() in _SENSITIVE_QUERY_KEYS:
            masked.append((key, "***"))
        else:
            masked.append((key, value))
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


def _log_http_event(**fields):
    """Emit a structured HTTP debug record (enabled with --verbose)."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "[HTTP] %s",
        json.dumps(fields, ensure_ascii=False, sort_keys=True, default=str),
        extra={"event": f"http.{fields.get('phase', 'event')}"},
    )


def is_json_content_type(content_type):
    return bool(content_type) and "json" in content_type.lower()


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class RequestAborted(Exception):
    """Internal signal: the in-flight request was cancelled mid-transfer."""


class Cancellation:
    """Thread-safe, one-shot abort signal.

    Callbacks registered with add_callback() run once when cancel() is first
    called (immediately if already cancelled). Callers pass one as
    ``ApiCallOptions.signal`` to abort a call from another thread.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []
        self.reason = None

    @property
    def cancelled(self):
        return self._event.is_set()

    def cancel(self, reason=None):
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback):
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback):
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def wait(self, timeout=None):
        return self._event.wait(timeout)


# ---------------------------------------------------------------------------
# Request / response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: dict = field(default_factory=dict)
    body: object = None
    verify_tls: bool = True


class HttpResponse:
    """Transport response with cancellation-aware body reads.

    Header names are lower-cased. The body may be read once.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, status, reason="", headers=None, stream=None):
        self.status = status
        self.reason = reason or ""
        self.headers = {str(k).lower(): v for k, v in (headers or {}).items()}
        self._stream = stream if stream is not None else io.BytesIO(b"")
        self.closed = False

    @property
    def ok(self):
        return 200 <= self.status < 300

    @property
    def content_type(self):
        return self.headers.get("content-type", "")

    def iter_chunks(self, cancel=None):
        """Yield body chunks, stopping with RequestAborted once *cancel* fires."""
        while True:
            if cancel is not None and cancel.cancelled:
                raise RequestAborted()
            chunk = self._stream.read(self.CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
        # A close() from another thread makes the read above return b"".
        if cancel is not None and cancel.cancelled:
            raise RequestAborted()

    def read(self, cancel=None):
        return b"".join(self.iter_chunks(cancel))

    def text(self, cancel=None):
        match = _CHARSET_RE.search(self.content_type)
        charset = match.group(1) if match else "utf-8"
        body = self.read(cancel)
        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self._stream.close()
        except OSError:
            pass


def _encode_body(body):
    if body is None:
        return None
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    return body


def _ssl_context(verify_tls):
    if verify_tls:
        return None
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def urllib_transport(request, timeout, cancel):
    """Default transport: one urllib round-trip.

    Non-2xx responses are returned, not raised, so the dispatcher owns
    classification. urlopen runs on a worker thread so that *cancel* stops
    the wait for headers immediately; a response that arrives after that is
    closed by the worker. Once returned, the response is closed as soon as
    *cancel* fires.
    """
    req = urllib.request.Request(
        request.url,
        data=_encode_body(request.body),
        headers=request.headers,
        method=request.method,
    )
    if cancel.cancelled:
        raise RequestAborted()
    context = _ssl_context(request.verify_tls)
    finished = threading.Event()
    lock = threading.Lock()
    outcome = {}

    def _open():
        try:
            try:
                raw = urllib.request.urlopen(req, timeout=timeout, context=context)
            except urllib.error.HTTPError as e:
                raw = e
            except Exception as e:
                outcome["error"] = e
                return
            with lock:
                if outcome.get("abandoned"):
                    raw.close()
                else:
                    outcome["raw"] = raw
        finally:
            finished.set()

    wake = finished.set
    cancel.add_callback(wake)
    threading.Thread(target=_open, name="technitium-http", daemon=True).start()
    try:
        finished.wait()
    finally:
        cancel.remove_callback(wake)
        with lock:
            raw = outcome.get("raw")
            abandoned = outcome["abandoned"] = cancel.cancelled or not finished.is_set()
        if abandoned and raw is not None:
            raw.close()
    if abandoned:
        raise RequestAborted()
    if "error" in outcome:
        raise outcome["error"]
    if isinstance(raw, urllib.error.HTTPError):
        response = HttpResponse(raw.code, raw.reason, raw.headers, raw if raw.fp else None)
    else:
        response = HttpResponse(raw.status, raw.reason, raw.headers, raw)
    cancel.add_callback(response.close)
    return response
