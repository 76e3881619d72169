"""Tests for the client facade."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from fmxml.client import FileMakerClient
from fmxml.config import ConnectionConfig, ErrorHandling
from fmxml.errors import ErrorKind, FileMakerError
from fmxml.layout import Layout
from fmxml.metadata import LayoutInfo
from fmxml.transport import HttpTransport

LAYOUT_XML = b'<?xml version="1.0"?><FMPXMLLAYOUT/>'


class _StubParser:
    def __init__(self) -> None:
        self.calls = 0

    def parse(self, payload: bytes) -> LayoutInfo:
        self.calls += 1
        assert payload == LAYOUT_XML
        return LayoutInfo(value_lists={"Colors": ("Red", "Blue")})


def _client(handler, **config) -> FileMakerClient:  # type: ignore[no-untyped-def]
    return FileMakerClient(
        ConnectionConfig(hostspec="http://fms.local/", database="Art", **config),
        transport=HttpTransport(transport=httpx.MockTransport(handler)),
        layout_parser=_StubParser(),
    )


def _denied(request: httpx.Request) -> httpx.Response:
    return httpx.Response(401)


def test_execute_returns_payload() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=LAYOUT_XML)

    client = _client(_handler)

    assert client.execute({"-dbnames": True}) == LAYOUT_XML
    assert client.last_requested_url == "http://fms.local/fmi/xml/fmresultset.xml?-dbnames"


def test_execute_raises_in_exception_mode() -> None:
    client = _client(_denied)

    with pytest.raises(FileMakerError) as excinfo:
        client.execute({"-dbnames": True})

    assert excinfo.value.kind is ErrorKind.AUTH_OR_PRIVILEGE


def test_error_mode_is_read_at_call_time() -> None:
    client = _client(_denied)
    client.set_property("error_handling", ErrorHandling.DEFAULT)

    result = client.execute({"-dbnames": True})

    assert isinstance(result, FileMakerError)
    client.set_property("error_handling", ErrorHandling.EXCEPTION)
    with pytest.raises(FileMakerError):
        client.get_container_data("/fmi/xml/cnt/a.jpg")


def test_get_container_data_rejects_remote_urls_in_default_mode() -> None:
    client = _client(_denied, error_handling=ErrorHandling.DEFAULT)

    result = client.get_container_data("https://other.host/x")

    assert isinstance(result, FileMakerError)
    assert result.kind is ErrorKind.UNSUPPORTED_REMOTE_CONTAINER


def test_set_property_rejects_unknown_names() -> None:
    client = _client(_denied)

    with pytest.raises(ValueError):
        client.set_property("colour", "blue")


def test_layout_loads_through_client_and_is_cached() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=LAYOUT_XML)

    client = _client(_handler)
    layout = client.layout("web")

    assert isinstance(layout, Layout)
    assert layout.get_value_list("Colors").value == ["Red", "Blue"]
    assert layout.get_value_list("Colors").value == ["Red", "Blue"]
    assert len(seen) == 1
    assert str(seen[0].url) == "http://fms.local/fmi/xml/FMPXMLLAYOUT.xml"
    assert seen[0].content == b"-db=Art&-lay=web&-view="
    assert client.cache_get("web") is layout
    assert client.layout("web") is layout

    client.cache_clear()

    assert client.cache_get("web") is None


def test_layout_lookups_follow_error_mode() -> None:
    client = _client(_denied)

    with pytest.raises(FileMakerError) as excinfo:
        client.get_field("web", "Nope")
    assert excinfo.value.kind is ErrorKind.FIELD_NOT_FOUND
    with pytest.raises(FileMakerError):
        client.get_value_list("web", "Colors")

    client.set_property("error_handling", ErrorHandling.DEFAULT)

    missing = client.get_related_set("web", "Portal")
    assert isinstance(missing, FileMakerError)
    assert missing.kind is ErrorKind.RELATED_SET_NOT_FOUND
    denied = client.load_extended_info("web")
    assert isinstance(denied, FileMakerError)
    assert denied.kind is ErrorKind.AUTH_OR_PRIVILEGE


def test_layout_values_are_unwrapped() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=LAYOUT_XML)

    client = _client(_handler)

    assert client.get_value_list("web", "Colors") == ["Red", "Blue"]
    assert client.list_value_lists("web") == ["Colors"]
    assert client.get_value_lists_two_fields("web") == {}


def test_set_property_validates_new_value() -> None:
    client = _client(_denied, error_handling=ErrorHandling.DEFAULT)

    with pytest.raises(ValidationError):
        client.set_property("charset", "no-such-charset")

    assert client.get_property("charset") == "utf-8"


def test_invalid_transport_option_is_returned_in_default_mode() -> None:
    client = _client(
        _denied,
        error_handling=ErrorHandling.DEFAULT,
        transport_options={"CURLOPT_SSL_VERIFYPEER": False},
    )

    result = client.execute({"-dbnames": True})

    assert isinstance(result, FileMakerError)
    assert result.kind is ErrorKind.TRANSPORT
