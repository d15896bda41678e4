"""Tests for TechnitiumClient — URL building, token precedence, body handling,
response classification, timeouts and cancellation, convenience operations.
The HTTP transport is replaced by FakeTransport (see conftest.py), except in
TestLocalServerDeadline, which talks to a localhost socket through urllib.
"""

import http.client
import io
import socket
import threading
import time
import urllib.error
import urllib.parse

import pytest
from conftest import json_response, text_response

from technitium_cli.api import Cancellation, HttpResponse
from technitium_cli.client import (
    TechnitiumClient,
    _encode_query_value,
    _resolve_body,
    create_client,
)
from technitium_cli.config import DEFAULT_CONFIG, ApiSection, AuthSection, merge_config
from technitium_cli.endpoints import get_endpoint_definition
from technitium_cli.exceptions import (
    ApiError,
    CliError,
    ConfigurationError,
    EndpointNotFoundError,
    HTTPError,
    RequestTimeoutError,
)
from technitium_cli.models import ApiCallOptions


def _query(url):
    return urllib.parse.parse_qsl(urllib.parse.urlsplit(url).query, keep_blank_values=True)


def _path(url):
    return urllib.parse.urlsplit(url).path


# ---------------------------------------------------------------------------
# Construction / session
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_empty_base_url_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TechnitiumClient(ApiSection(base_url="  ", timeout_ms=1000, verify_tls=True))

    def test_configured_token_seeds_session(self, make_client):
        client = make_client(token="abc")
        snap = client.get_session_token()
        assert snap.token == "abc"
        assert snap.source == "config"

    def test_no_token_means_unknown_source(self, make_client):
        snap = make_client(token=None).get_session_token()
        assert snap.token is None
        assert snap.source == "unknown"

    def test_set_session_token(self, make_client):
        client = make_client()
        client.set_session_token("new", "explicit")
        assert client.get_session_token() == ("new", "explicit")

    def test_set_session_token_rejects_unknown_source(self, make_client):
        with pytest.raises(ValueError):
            make_client().set_session_token("x", "cookie")

    def test_create_client_from_configuration(self):
        configuration = merge_config(DEFAULT_CONFIG, {"auth": {"token": "t0"}})
        client = create_client(configuration)
        assert client.base_url == "http://localhost:5380/"
        assert client.timeout_ms == 15_000
        assert client.get_session_token().source == "config"


# ---------------------------------------------------------------------------
# URL construction
# ---------------------------------------------------------------------------


class TestBuildUrl:
    def test_default_query_then_token(self, make_client, transport):
        make_client().call("dashboard.stats.get")
        url = transport.last.url
        assert _path(url) == "/api/dashboard/stats/get"
        assert _query(url) == [("type", "LastHour"), ("utc", "true"), ("token", "cfg-token")]

    def test_caller_query_overrides_default(self, make_client, transport):
        make_client().call("dashboard.stats.get", query={"type": "LastDay"})
        assert ("type", "LastDay") in _query(transport.last.url)
        assert ("type", "LastHour") not in _query(transport.last.url)

    def test_list_values_become_repeated_keys(self, make_client, transport):
        make_client().call("zones.list", query={"zone": ["a.com", None, "b.com"]})
        pairs = [p for p in _query(transport.last.url) if p[0] == "zone"]
        assert pairs == [("zone", "a.com"), ("zone", "b.com")]

    def test_list_replaces_default_scalar(self, make_client, transport):
        make_client().call("dns.resolve", query={"domain": "x.com", "type": ["A", "AAAA"]})
        types = [v for k, v in _query(transport.last.url) if k == "type"]
        assert types == ["A", "AAAA"]

    def test_top_level_none_is_omitted(self, make_client, transport):
        make_client().call("zones.list", query={"node": None})
        assert "node" not in dict(_query(transport.last.url))

    def test_base_url_path_prefix_is_kept(self, transport):
        api = ApiSection(base_url="https://proxy.local/technitium", timeout_ms=0, verify_tls=False)
        client = TechnitiumClient(api, auth=AuthSection(token="t"), transport=transport)
        client.call("zones.list")
        assert _path(transport.last.url) == "/technitium/api/zones/list"
        assert transport.last.verify_tls is False

    def test_encode_query_value(self):
        assert _encode_query_value(True) == "true"
        assert _encode_query_value(False) == "false"
        assert _encode_query_value(None) == ""
        assert _encode_query_value(3600.0) == "3600"
        assert _encode_query_value(1.5) == "1.5"
        assert _encode_query_value("x") == "x"

    def test_build_url_is_public(self, make_client):
        client = make_client()
        url = client.build_url(get_endpoint_definition("user.logout"))
        assert url == "http://dns.example:5380/api/user/logout"


# ---------------------------------------------------------------------------
# Token precedence
# ---------------------------------------------------------------------------


class TestTokenPrecedence:
    def test_explicit_token_wins(self, make_client, transport):
        client = make_client()
        client.set_session_token("session", "login")
        client.call("zones.list", token="explicit")
        assert dict(_query(transport.last.url))["token"] == "explicit"

    def test_session_token_beats_config(self, make_client, transport):
        client = make_client(token="cfg")
        client.set_session_token("session", "login")
        client.call("zones.list")
        assert dict(_query(transport.last.url))["token"] == "session"

    def test_config_token_used_when_session_cleared(self, make_client, transport):
        client = make_client(token="cfg")
        client.set_session_token(None, "explicit")
        client.call("zones.list")
        assert dict(_query(transport.last.url))["token"] == "cfg"

    def test_missing_token_fails_before_io(self, make_client, transport):
        with pytest.raises(ConfigurationError) as exc_info:
            make_client(token=None).call("zones.list")
        assert exc_info.value.endpoint_id == "zones.list"
        assert exc_info.value.exit_code == 2
        assert transport.requests == []

    def test_include_token_false_skips_token(self, make_client, transport):
        make_client().call("zones.list", include_token=False)
        assert "token" not in dict(_query(transport.last.url))

    def test_include_token_true_on_public_endpoint(self, make_client, transport):
        make_client().call("user.logout", include_token=True)
        assert dict(_query(transport.last.url))["token"] == "cfg-token"

    def test_query_token_is_not_duplicated(self, make_client, transport):
        make_client().call("zones.list", query={"token": "given"})
        tokens = [v for k, v in _query(transport.last.url) if k == "token"]
        assert tokens == ["given"]

    def test_public_endpoint_needs_no_token(self, make_client, transport):
        make_client(token=None).call("user.logout")
        assert "token" not in dict(_query(transport.last.url))


# ---------------------------------------------------------------------------
# Headers and body
# ---------------------------------------------------------------------------


class TestBody:
    def test_dict_body_is_json_encoded(self, make_client, transport):
        make_client().call("zones.create", method="post", body={"zone": "a.com"})
        req = transport.last
        assert req.method == "POST"
        assert req.body == '{"zone": "a.com"}'
        assert req.headers["content-type"] == "application/json"
        assert req.headers["accept"] == "application/json"

    def test_existing_content_type_is_respected(self, make_client, transport):
        make_client().call(
            "zones.create", body=[1, 2], headers={"Content-Type": "application/x-custom"}
        )
        assert transport.last.headers["content-type"] == "application/x-custom"

    def test_raw_bodies_pass_through(self):
        stream = io.BytesIO(b"x")
        for body in (b"raw", bytearray(b"raw"), "text", stream):
            headers = {}
            assert _resolve_body(body, headers) is body
            assert headers == {}

    def test_no_body(self, make_client, transport):
        make_client().call("zones.list")
        assert transport.last.body is None
        assert "content-type" not in transport.last.headers

    def test_default_headers_are_lowercased(self, make_client, transport):
        make_client(default_headers={"X-Trace": "1"}).call("zones.list")
        assert transport.last.headers["x-trace"] == "1"


# ---------------------------------------------------------------------------
# Response classification
# ---------------------------------------------------------------------------


class TestClassification:
    def test_ok_envelope_returns_nested_response(self, make_client, transport):
        transport.queue(json_response({"status": "ok", "response": {"x": 1}}))
        result = make_client().call("zones.list")
        assert result.data == {"x": 1}
        assert result.status == "ok"
        assert result.raw == {"status": "ok", "response": {"x": 1}}
        assert result.endpoint.id == "zones.list"

    def test_envelope_without_response_is_data(self, make_client, transport):
        transport.queue(json_response({"status": "ok", "token": "t"}))
        assert make_client().call("zones.list").data == {"status": "ok", "token": "t"}

    def test_missing_status_normalizes_to_ok(self, make_client, transport):
        transport.queue(json_response({"response": [1]}))
        result = make_client().call("zones.list")
        assert result.status == "ok"
        assert result.data == [1]

    def test_error_envelope_is_api_error(self, make_client, transport):
        transport.queue(json_response({"status": "error", "errorMessage": "bad zone"}))
        with pytest.raises(ApiError) as exc_info:
            make_client().call("zones.create", query={"zone": "x"})
        err = exc_info.value
        assert str(err) == "bad zone"
        assert err.status == "error"
        assert err.endpoint_id == "zones.create"
        assert err.endpoint_path == "/api/zones/create"
        assert err.payload["errorMessage"] == "bad zone"

    def test_error_envelope_without_message(self, make_client, transport):
        transport.queue(json_response({"status": "invalid-token"}))
        with pytest.raises(ApiError) as exc_info:
            make_client().call("zones.list")
        assert exc_info.value.status == "invalid-token"
        assert "invalid-token" in str(exc_info.value)

    def test_404_is_http_error_regardless_of_body(self, make_client, transport):
        transport.queue(json_response({"status": "ok"}, status=404, reason="Not Found"))
        with pytest.raises(HTTPError) as exc_info:
            make_client().call("zones.list")
        err = exc_info.value
        assert err.status_code == 404
        assert err.status_text == "Not Found"
        assert err.endpoint_id == "zones.list"
        assert err.payload == {"status": "ok"}
        assert err.exit_code == 1

    def test_http_error_payload_omitted_for_bad_json(self, make_client, transport):
        transport.queue(json_response(b"{not json", status=500, reason="Server Error"))
        with pytest.raises(HTTPError) as exc_info:
            make_client().call("zones.list")
        assert exc_info.value.payload is None

    def test_http_error_payload_omitted_for_non_json_type(self, make_client, transport):
        transport.queue(json_response({"a": 1}, status=502, content_type="text/html"))
        with pytest.raises(HTTPError) as exc_info:
            make_client().call("zones.list")
        assert exc_info.value.payload is None

    def test_invalid_json_on_success_is_api_error(self, make_client, transport):
        transport.queue(json_response(b"<html>", status=200))
        with pytest.raises(ApiError) as exc_info:
            make_client().call("zones.list")
        assert exc_info.value.status == "invalid_response"

    def test_non_object_json_is_wrapped(self, make_client, transport):
        transport.queue(json_response([1, 2, 3]))
        result = make_client().call("zones.list")
        assert result.data == [1, 2, 3]
        assert result.raw == {"status": "ok", "response": [1, 2, 3]}

    def test_unknown_endpoint_fails_before_io(self, make_client, transport):
        with pytest.raises(EndpointNotFoundError) as exc_info:
            make_client().call("zones.nope")
        assert exc_info.value.known_ids == sorted(exc_info.value.known_ids)
        assert "zones.list" in exc_info.value.known_ids
        assert transport.requests == []

    def test_response_is_closed_after_call(self, make_client, transport):
        response = json_response({"status": "ok"})
        transport.queue(response)
        make_client().call("zones.list")
        assert response.closed is True


class TestResponseTypes:
    def test_auto_text(self, make_client, transport):
        transport.queue(text_response("line1\nline2"))
        result = make_client().call("logs.download")
        assert result.data == "line1\nline2"

    def test_forced_text_on_json_content(self, make_client, transport):
        transport.queue(json_response({"status": "ok"}))
        result = make_client().call("zones.list", response_type="text")
        assert result.data == '{"status": "ok"}'

    def test_forced_json_on_text_content(self, make_client, transport):
        transport.queue(text_response('{"status": "ok", "response": 5}'))
        assert make_client().call("zones.list", response_type="json").data == 5

    def test_bytes(self, make_client, transport):
        transport.queue(text_response("abc", content_type="application/octet-stream"))
        assert make_client().call("logs.download", response_type="bytes").data == b"abc"

    def test_stream_is_left_open(self, make_client, transport):
        response = text_response("chunk")
        transport.queue(response)
        result = make_client().call("logs.download", response_type="stream")
        assert result.data is response
        assert response.closed is False
        assert response.read() == b"chunk"
        response.close()

    def test_invalid_response_type(self):
        with pytest.raises(CliError):
            ApiCallOptions(response_type="xml")


# ---------------------------------------------------------------------------
# Timeouts and cancellation
# ---------------------------------------------------------------------------


class _FakeTimer:
    instances = []

    def __init__(self, interval, function, args=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.started = False
        self.cancelled = False
        _FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args)


@pytest.fixture
def fake_timer(monkeypatch):
    _FakeTimer.instances = []
    monkeypatch.setattr("technitium_cli.client.threading.Timer", _FakeTimer)
    return _FakeTimer


class TestTimeouts:
    def test_timer_armed_and_cancelled(self, make_client, transport, fake_timer):
        make_client().call("zones.list")
        (timer,) = fake_timer.instances
        assert timer.interval == 5.0
        assert timer.daemon is True
        assert timer.started and timer.cancelled
        assert transport.timeouts == [5.0]

    def test_per_call_timeout_overrides_client(self, make_client, transport, fake_timer):
        make_client().call("zones.list", timeout_ms=250)
        assert fake_timer.instances[0].interval == 0.25

    def test_zero_budget_disables_timer(self, make_client, transport, fake_timer):
        make_client().call("zones.list", timeout_ms=0)
        assert fake_timer.instances == []
        assert transport.timeouts == [None]

    def test_deadline_during_read_is_timeout(self, make_client, transport, fake_timer):
        def _slow(request, timeout, cancel):
            response = json_response({"status": "ok"})
            fake_timer.instances[-1].fire()
            return response

        transport.queue(_slow)
        with pytest.raises(RequestTimeoutError) as exc_info:
            make_client().call("zones.list", timeout_ms=1000)
        err = exc_info.value
        assert err.timeout_ms == 1000
        assert err.cancelled is False
        assert err.endpoint_id == "zones.list"
        assert err.exit_code == 3
        assert fake_timer.instances[-1].cancelled is True

    def test_deadline_closes_response(self, make_client, transport, fake_timer):
        response = json_response({"status": "ok"})

        def _slow(request, timeout, cancel):
            cancel.add_callback(response.close)
            fake_timer.instances[-1].fire()
            return response

        transport.queue(_slow)
        with pytest.raises(RequestTimeoutError):
            make_client().call("zones.list")
        assert response.closed is True

    def test_socket_timeout_is_timeout(self, make_client, transport):
        transport.queue(TimeoutError("timed out"))
        with pytest.raises(RequestTimeoutError) as exc_info:
            make_client().call("zones.list", timeout_ms=10)
        assert exc_info.value.timeout_ms == 10

    def test_urlerror_timeout_is_timeout(self, make_client, transport):
        transport.queue(urllib.error.URLError(TimeoutError("timed out")))
        with pytest.raises(RequestTimeoutError):
            make_client().call("zones.list")

    def test_connection_refused_is_cli_error(self, make_client, transport):
        transport.queue(urllib.error.URLError(ConnectionRefusedError("refused")))
        with pytest.raises(CliError) as exc_info:
            make_client().call("zones.list")
        assert not isinstance(exc_info.value, RequestTimeoutError)
        assert "Connection failed" in str(exc_info.value)

    @pytest.mark.parametrize(
        "error",
        [http.client.BadStatusLine("garbage"), http.client.IncompleteRead(b"ab", 10)],
    )
    def test_protocol_error_is_cli_error(self, make_client, transport, error):
        transport.queue(error)
        with pytest.raises(CliError) as exc_info:
            make_client().call("zones.list")
        assert not isinstance(exc_info.value, RequestTimeoutError)
        assert "Connection failed" in str(exc_info.value)

    def test_stream_stops_deadline_timer_on_return(self, make_client, transport, fake_timer):
        response = text_response("chunk")
        transport.queue(response)
        result = make_client().call("logs.download", response_type="stream", timeout_ms=1000)
        assert fake_timer.instances[-1].cancelled is True
        assert result.data.closed is False
        response.close()


@pytest.fixture
def local_server(monkeypatch):
    """Start one-connection TCP servers on 127.0.0.1.

    Call the fixture with ``handler(conn, stop)``; it returns the port.
    *stop* is set at teardown so handlers that stall can exit.
    """
    for name in ("http_proxy", "HTTP_PROXY", "all_proxy", "ALL_PROXY"):
        monkeypatch.delenv(name, raising=False)
    servers = []

    def _start(handler):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        sock.listen(1)
        stop = threading.Event()

        def _run():
            try:
                conn, _ = sock.accept()
            except OSError:
                return
            with conn:
                conn.recv(65536)
                handler(conn, stop)

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        servers.append((sock, stop, thread))
        return sock.getsockname()[1]

    yield _start
    for sock, stop, thread in servers:
        stop.set()
        sock.close()
        thread.join(5)


def _local_client(port, timeout_ms):
    api = ApiSection(base_url=f"http://127.0.0.1:{port}", timeout_ms=timeout_ms, verify_tls=True)
    return TechnitiumClient(api, auth=AuthSection(token="t"))


def _trickle_headers(conn, stop):
    try:
        conn.sendall(b"HTTP/1.1 200 OK\r\n")
        while not stop.wait(0.3):
            conn.sendall(b"X-Pad: 1\r\n")
    except OSError:
        return


def _stall(conn, stop):
    stop.wait(10)


class TestLocalServerDeadline:
    """Real sockets and the default transport; no fake timers."""

    def test_trickled_headers_stop_at_budget(self, local_server):
        port = local_server(_trickle_headers)
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError) as exc_info:
            _local_client(port, 1000).call("settings.get")
        elapsed = time.monotonic() - start
        assert exc_info.value.cancelled is False
        assert elapsed < 1.0 + 1.0

    def test_silent_server_stops_at_budget(self, local_server):
        port = local_server(_stall)
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError):
            _local_client(port, 500).call("settings.get")
        assert time.monotonic() - start < 0.5 + 1.0

    def test_caller_cancel_interrupts_wait(self, local_server):
        port = local_server(_trickle_headers)
        signal = Cancellation()
        threading.Timer(0.2, signal.cancel, args=("user abort",)).start()
        start = time.monotonic()
        with pytest.raises(RequestTimeoutError) as exc_info:
            _local_client(port, 30000).call("settings.get", signal=signal)
        assert exc_info.value.cancelled is True
        assert time.monotonic() - start < 0.2 + 1.0

    def test_garbage_status_line_is_cli_error(self, local_server):
        def _garbage(conn, stop):
            conn.sendall(b"garbage\r\n\r\n")

        port = local_server(_garbage)
        with pytest.raises(CliError) as exc_info:
            _local_client(port, 5000).call("settings.get")
        assert not isinstance(exc_info.value, RequestTimeoutError)
        assert "Connection failed" in str(exc_info.value)

    def test_json_response_round_trip(self, local_server):
        body = b'{"status": "ok", "response": {"version": "13.0"}}'

        def _ok(conn, stop):
            head = (
                "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                f"Content-Length: {len(body)}\r\nConnection: close\r\n\r\n"
            )
            conn.sendall(head.encode() + body)

        port = local_server(_ok)
        result = _local_client(port, 5000).call("settings.get")
        assert result.data == {"version": "13.0"}


class TestCancellation:
    def test_pre_cancelled_signal_aborts(self, make_client, transport):
        signal = Cancellation()
        signal.cancel("user abort")
        with pytest.raises(RequestTimeoutError) as exc_info:
            make_client().call("zones.list", signal=signal)
        assert exc_info.value.cancelled is True
        assert "user abort" in str(exc_info.value)
        assert transport.requests == []

    def test_exception_reason_is_raised(self, make_client, transport):
        signal = Cancellation()

        class Shutdown(Exception):
            pass

        def _cancel_midway(request, timeout, cancel):
            signal.cancel(Shutdown("bye"))
            return json_response({"status": "ok"})

        transport.queue(_cancel_midway)
        with pytest.raises(Shutdown):
            make_client().call("zones.list", signal=signal)

    def test_signal_link_removed_after_call(self, make_client, transport):
        signal = Cancellation()
        make_client().call("zones.list", signal=signal)
        assert signal._callbacks == []
        signal.cancel("late")
        assert signal.cancelled

    def test_cancellation_callbacks_run_once(self):
        calls = []
        cancel = Cancellation()
        cancel.add_callback(lambda: calls.append(1))
        cancel.cancel("a")
        cancel.cancel("b")
        assert calls == [1]
        assert cancel.reason == "a"
        cancel.add_callback(lambda: calls.append(2))
        assert calls == [1, 2]
        assert cancel.wait(0) is True


# ---------------------------------------------------------------------------
# Convenience operations
# ---------------------------------------------------------------------------


class TestLoginLogout:
    def test_login_sets_session_token(self, make_client, transport):
        transport.queue(json_response({"status": "ok", "token": "new-token", "username": "a"}))
        client = make_client(token=None)
        data = client.login("admin", "secret")
        assert data["token"] == "new-token"
        assert client.get_session_token() == ("new-token", "login")
        req = transport.last
        assert req.method == "POST"
        query = dict(_query(req.url))
        assert query == {"user": "admin", "pass": "secret"}

    def test_login_falls_back_to_configured_credentials(self, make_client, transport):
        transport.queue(json_response({"status": "ok", "token": "t"}))
        make_client(username="cfg-user", password="cfg-pass").login(include_info=True)
        query = dict(_query(transport.last.url))
        assert query["user"] == "cfg-user"
        assert query["pass"] == "cfg-pass"
        assert query["includeInfo"] == "true"

    def test_login_without_credentials(self, make_client, transport):
        with pytest.raises(ConfigurationError):
            make_client().login()
        assert transport.requests == []

    def test_login_without_token_in_response(self, make_client, transport):
        transport.queue(json_response({"status": "ok"}))
        with pytest.raises(ApiError):
            make_client().login("a", "b")

    def test_logout_clears_session(self, make_client, transport):
        client = make_client(token=None)
        client.set_session_token("sess", "login")
        client.logout()
        assert dict(_query(transport.last.url)) == {"token": "sess"}
        assert client.get_session_token().token is None

    def test_logout_explicit_token_keeps_session(self, make_client, transport):
        client = make_client(token=None)
        client.set_session_token("sess", "login")
        client.logout("other")
        assert dict(_query(transport.last.url)) == {"token": "other"}
        assert client.get_session_token() == ("sess", "login")

    def test_logout_falls_back_to_config_token(self, make_client, transport):
        client = make_client(token="cfg")
        client.set_session_token(None, "explicit")
        client.logout()
        assert dict(_query(transport.last.url)) == {"token": "cfg"}

    def test_logout_without_any_token(self, make_client, transport):
        with pytest.raises(ConfigurationError):
            make_client(token=None).logout()
        assert transport.requests == []


class TestConvenience:
    def test_list_zone_records(self, make_client, transport):
        make_client().list_zone_records("example.com", list_zone=True)
        url = transport.last.url
        assert _path(url) == "/api/zones/records/get"
        query = dict(_query(url))
        assert query["zone"] == "example.com"
        assert query["domain"] == "example.com"
        assert query["listZone"] == "true"

    def test_list_zone_records_requires_target(self, make_client):
        with pytest.raises(CliError):
            make_client().list_zone_records()

    def test_resolve_dns_uses_defaults(self, make_client, transport):
        make_client().resolve_dns("example.com")
        query = dict(_query(transport.last.url))
        assert query["server"] == "this-server"
        assert query["type"] == "A"
        assert query["domain"] == "example.com"
        assert "dnssec" not in query

    def test_resolve_dns_overrides(self, make_client, transport):
        make_client().resolve_dns(
            "example.com", record_type="MX", server="1.1.1.1", protocol="Tcp", dnssec=True
        )
        query = dict(_query(transport.last.url))
        assert query["type"] == "MX"
        assert query["server"] == "1.1.1.1"
        assert query["protocol"] == "Tcp"
        assert query["dnssec"] == "true"

    def test_download_log_returns_text(self, make_client, transport):
        transport.queue(json_response({"not": "parsed"}))
        text = make_client().download_log("2024-01-01")
        assert text == '{"not": "parsed"}'
        assert dict(_query(transport.last.url))["fileName"] == "2024-01-01"

    def test_delete_log(self, make_client, transport):
        make_client().delete_log("2024-01-01")
        assert dict(_query(transport.last.url))["log"] == "2024-01-01"

    def test_create_zone_default_type(self, make_client, transport):
        make_client().create_zone("example.com")
        assert dict(_query(transport.last.url))["type"] == "Primary"

    def test_create_zone_extra_params(self, make_client, transport):
        make_client().create_zone("fwd.example", "Forwarder", forwarder="9.9.9.9")
        query = dict(_query(transport.last.url))
        assert query["type"] == "Forwarder"
        assert query["forwarder"] == "9.9.9.9"

    def test_top_stats(self, make_client, transport):
        make_client().get_top_stats(stats_type="TopDomains", limit=5)
        query = dict(_query(transport.last.url))
        assert query["statsType"] == "TopDomains"
        assert query["limit"] == "5"
        assert query["type"] == "LastHour"

    @pytest.mark.parametrize(
        "method,args,path",
        [
            ("flush_cache", (), "/api/cache/flush"),
            ("delete_cached_zone", ("a.com",), "/api/cache/delete"),
            ("allow_zone", ("a.com",), "/api/allowed/add"),
            ("delete_allowed_zone", ("a.com",), "/api/allowed/delete"),
            ("flush_allowed_zones", (), "/api/allowed/flush"),
            ("block_zone", ("a.com",), "/api/blocked/add"),
            ("delete_blocked_zone", ("a.com",), "/api/blocked/delete"),
            ("flush_blocked_zones", (), "/api/blocked/flush"),
            ("enable_zone", ("a.com",), "/api/zones/enable"),
            ("disable_zone", ("a.com",), "/api/zones/disable"),
            ("delete_zone", ("a.com",), "/api/zones/delete"),
            ("get_settings", (), "/api/settings/get"),
            ("get_session_info", (), "/api/user/session/get"),
            ("get_profile", (), "/api/user/profile/get"),
            ("list_logs", (), "/api/logs/list"),
        ],
    )
    def test_paths(self, make_client, transport, method, args, path):
        transport.queue(json_response({"status": "ok", "response": {"done": True}}))
        data = getattr(make_client(), method)(*args)
        assert data == {"done": True}
        assert _path(transport.last.url) == path


class TestHttpResponse:
    def test_header_names_lowercased(self):
        response = HttpResponse(200, "OK", {"Content-Type": "application/json"})
        assert response.content_type == "application/json"
        assert response.read() == b""

    def test_text_uses_declared_charset(self):
        body = "café".encode("latin-1")
        response = HttpResponse(
            200, "OK", {"content-type": "text/plain; charset=latin-1"}, io.BytesIO(body)
        )
        assert response.text() == "café"
