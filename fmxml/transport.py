"""Blocking HTTP transport used by the XML connector."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx

LOG = logging.getLogger(__name__)

_WIRE_HEADERS = {b"content-encoding", b"content-length", b"transfer-encoding"}


class TransportErrorCode(IntEnum):
    """Low-level failure codes reported by a transport."""

    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_CONNECT = 7
    HTTP_RETURNED_ERROR = 22
    OPERATION_TIMEDOUT = 28
    UNKNOWN_OPTION = 48
    GOT_NOTHING = 52
    RECV_ERROR = 56


@dataclass(frozen=True, slots=True)
class TransportOutcome:
    """Result of exactly one request attempt."""

    ok: bool
    raw: bytes = b""
    code: int | None = None
    message: str = ""
    status: int | None = None

    @classmethod
    def success(cls, raw: bytes, *, status: int | None = None) -> TransportOutcome:
        return cls(ok=True, raw=raw, status=status)

    @classmethod
    def failure(cls, code: int, message: str, *, status: int | None = None) -> TransportOutcome:
        return cls(ok=False, code=int(code), message=message, status=status)


@runtime_checkable
class Transport(Protocol):
    """Interface implemented by request transports."""

    available: bool

    def send(
        self,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
        capture_headers: bool = True,
    ) -> TransportOutcome:
        """Perform one request and report its outcome."""


class HttpTransport:
    """Transport backed by a short-lived `httpx.Client` per request.

    Keyword arguments become the built-in client settings; per-call options
    are applied over them verbatim, so callers can override anything
    (``verify``, ``timeout``, ``proxy``, ``transport``...). A ``headers``
    option is merged over the request headers instead.
    """

    available = True

    def __init__(self, **client_defaults: Any) -> None:
        self._client_defaults: dict[str, Any] = {"follow_redirects": False}
        self._client_defaults.update(client_defaults)

    def send(
        self,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str],
        body: str | None = None,
        options: Mapping[str, Any] | None = None,
        capture_headers: bool = True,
    ) -> TransportOutcome:
        client_kwargs = dict(self._client_defaults)
        client_kwargs.update(options or {})
        request_headers = dict(headers)
        extra_headers = client_kwargs.pop("headers", None)
        if extra_headers:
            request_headers.update(extra_headers)
        content = body.encode("utf-8") if body is not None else None
        try:
            client = httpx.Client(**client_kwargs)
        except TypeError as exc:
            LOG.debug("Rejected transport options", extra={"url": url, "options": sorted(client_kwargs)})
            return TransportOutcome.failure(TransportErrorCode.UNKNOWN_OPTION, f"Invalid transport option: {exc}")
        try:
            with client:
                with client.stream(method, url, headers=request_headers, content=content) as response:
                    if response.status_code >= 400:
                        return TransportOutcome.failure(
                            TransportErrorCode.HTTP_RETURNED_ERROR,
                            f"The requested URL returned error: {response.status_code} {response.reason_phrase}".rstrip(),
                            status=response.status_code,
                        )
                    payload = response.read()
                    raw = _frame(response, payload) if capture_headers else payload
                    return TransportOutcome.success(raw, status=response.status_code)
        except httpx.InvalidURL as exc:
            return TransportOutcome.failure(TransportErrorCode.URL_MALFORMAT, str(exc))
        except httpx.HTTPError as exc:
            code = _error_code(exc)
            LOG.debug("Transport failure", extra={"url": url, "code": code})
            return TransportOutcome.failure(code, str(exc) or type(exc).__name__)


def _frame(response: httpx.Response, payload: bytes) -> bytes:
    """Rebuild the status line and header block ahead of the body.

    The body has already been decoded, so the header block describes it:
    transfer framing headers are replaced by its actual length.
    """

    status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip()
    lines = [status_line.encode("latin-1")]
    for key, value in response.headers.raw:
        if key.lower() in _WIRE_HEADERS:
            continue
        lines.append(key + b": " + value)
    lines.append(b"Content-Length: " + str(len(payload)).encode("ascii"))
    return b"\r\n".join(lines) + b"\r\n\r\n" + payload


def _error_code(exc: httpx.HTTPError) -> TransportErrorCode:
    if isinstance(exc, httpx.RemoteProtocolError):
        return TransportErrorCode.GOT_NOTHING
    if isinstance(exc, httpx.TimeoutException):
        return TransportErrorCode.OPERATION_TIMEDOUT
    if isinstance(exc, httpx.ConnectError):
        return TransportErrorCode.COULDNT_CONNECT
    if isinstance(exc, httpx.UnsupportedProtocol):
        return TransportErrorCode.UNSUPPORTED_PROTOCOL
    return TransportErrorCode.RECV_ERROR


__all__ = ["HttpTransport", "Transport", "TransportErrorCode", "TransportOutcome"]
