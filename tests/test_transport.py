"""Tests for the httpx-backed transport."""

from __future__ import annotations

import gzip

import httpx

from fmxml.framing import content_length
from fmxml.transport import HttpTransport, TransportErrorCode


def _transport(handler) -> HttpTransport:  # type: ignore[no-untyped-def]
    return HttpTransport(transport=httpx.MockTransport(handler))


def test_post_sends_form_body_and_captures_framing() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, headers={"X-Test": "yes"}, content=b"<?xml version='1.0'?><ok/>")

    outcome = _transport(_handler).send(
        "http://fms.local/fmi/xml/fmresultset.xml",
        method="POST",
        headers={"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
        body="-db=Contacts&-findall",
    )

    assert outcome.ok is True
    assert outcome.status == 200
    assert outcome.raw.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"X-Test: yes\r\n" in outcome.raw
    assert outcome.raw.endswith(b"\r\n\r\n<?xml version='1.0'?><ok/>")
    assert seen[0].method == "POST"
    assert seen[0].content == b"-db=Contacts&-findall"


def test_body_only_when_headers_are_not_captured() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<?xml version='1.0'?><ok/>")

    outcome = _transport(_handler).send(
        "http://fms.local/fmi/xml/fmresultset.xml",
        method="POST",
        headers={},
        body="",
        capture_headers=False,
    )

    assert outcome.raw == b"<?xml version='1.0'?><ok/>"


def test_get_sends_no_body() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"DATA")

    outcome = _transport(_handler).send("http://fms.local/fmi/xml/cnt/a.jpg", method="GET", headers={})

    assert outcome.ok is True
    assert seen[0].method == "GET"
    assert seen[0].content == b""


def test_http_error_status_fails_fast() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, content=b"denied")

    outcome = _transport(_handler).send("http://fms.local/x", method="POST", headers={}, body="")

    assert outcome.ok is False
    assert outcome.code == TransportErrorCode.HTTP_RETURNED_ERROR
    assert outcome.status == 401
    assert outcome.message == "The requested URL returned error: 401 Unauthorized"
    assert outcome.raw == b""


def test_dropped_connection_maps_to_got_nothing() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    outcome = _transport(_handler).send("http://fms.local/x", method="POST", headers={}, body="")

    assert outcome.ok is False
    assert outcome.code == TransportErrorCode.GOT_NOTHING
    assert "Server disconnected" in outcome.message


def test_connect_and_timeout_errors_are_mapped() -> None:
    def _refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    def _slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    refused = _transport(_refused).send("http://fms.local/x", method="GET", headers={})
    slow = _transport(_slow).send("http://fms.local/x", method="GET", headers={})

    assert refused.code == TransportErrorCode.COULDNT_CONNECT
    assert slow.code == TransportErrorCode.OPERATION_TIMEDOUT


def test_options_override_defaults_and_merge_headers() -> None:
    seen: list[httpx.Request] = []

    def _unused(request: httpx.Request) -> httpx.Response:
        raise AssertionError("default transport should be overridden")

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    transport = HttpTransport(transport=httpx.MockTransport(_unused))
    outcome = transport.send(
        "http://fms.local/x",
        method="GET",
        headers={"X-One": "builtin", "X-Two": "builtin"},
        options={"transport": httpx.MockTransport(_handler), "headers": {"X-Two": "override"}},
    )

    assert outcome.ok is True
    assert seen[0].headers["X-One"] == "builtin"
    assert seen[0].headers["X-Two"] == "override"


def test_unknown_option_fails_without_raising() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request should be attempted")

    outcome = _transport(_handler).send(
        "http://fms.local/fmi/xml/fmresultset.xml",
        method="POST",
        headers={},
        body="-dbnames",
        options={"CURLOPT_SSL_VERIFYPEER": False},
    )

    assert outcome.ok is False
    assert outcome.code == TransportErrorCode.UNKNOWN_OPTION
    assert outcome.message.startswith("Invalid transport option:")
    assert "CURLOPT_SSL_VERIFYPEER" in outcome.message


def test_framing_describes_decoded_body() -> None:
    decoded = b"<?xml version='1.0'?><fmresultset/>"

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=gzip.compress(decoded))

    outcome = _transport(_handler).send("http://fms.local/x.xml", method="GET", headers={})

    header_block, _, body = outcome.raw.partition(b"\r\n\r\n")
    assert body == decoded
    assert b"content-encoding" not in header_block.lower()
    assert header_block.lower().count(b"content-length") == 1
    assert content_length(outcome.raw) == len(decoded)
