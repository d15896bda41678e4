"""
Shared test fixtures for technitiumdns-cli tests.
Isolates the config file and environment and replaces the HTTP transport.
"""

import io
import json
import logging

import pytest

from technitium_cli.api import HttpResponse
from technitium_cli.config import ApiSection, AuthSection


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Every test gets an empty XDG config dir and no TECHNITIUMDNS_CLI_* vars."""
    import os

    for name in list(os.environ):
        if name.startswith("TECHNITIUMDNS_CLI_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """cli.main() configures the package logger; undo it so caplog sees records."""
    yield
    logger = logging.getLogger("technitium_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def json_response(payload, status=200, reason="OK", content_type="application/json"):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return HttpResponse(status, reason, {"Content-Type": content_type}, io.BytesIO(body))


def text_response(text, status=200, content_type="text/plain; charset=utf-8"):
    return HttpResponse(status, "OK", {"Content-Type": content_type}, io.BytesIO(text.encode()))


class FakeTransport:
    """Records requests and replays queued responses (or raises queued errors)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.timeouts = []
        self.cancels = []

    def queue(self, response):
        self.responses.append(response)

    def __call__(self, request, timeout, cancel):
        self.requests.append(request)
        self.timeouts.append(timeout)
        self.cancels.append(cancel)
        if not self.responses:
            return json_response({"status": "ok", "response": {}})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = response(request, timeout, cancel)
        cancel.add_callback(response.close)
        return response

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def api_section():
    return ApiSection(base_url="http://dns.example:5380", timeout_ms=5000, verify_tls=True)


@pytest.fixture
def make_client(transport, api_section):
    from technitium_cli.client import TechnitiumClient

    def _make(token="cfg-token", username=None, password=None, **kwargs):
        auth = AuthSection(username=username, password=password, token=token)
        return TechnitiumClient(api_section, auth=auth, transport=transport, **kwargs)

    return _make
