"""Connector for the Custom Web Publishing XML interface."""

from __future__ import annotations

import base64
import html
import logging
from typing import Callable, Mapping, Protocol
from urllib.parse import quote_plus

from .config import ConnectionConfig
from .errors import ErrorKind, FileMakerError
from .framing import content_length, strip_container_framing, strip_xml_framing, sync_session_cookie
from .result import Result
from .session import SessionContext
from .transport import HttpTransport, Transport, TransportErrorCode, TransportOutcome

LOG = logging.getLogger(__name__)

GRAMMAR_KEY = "-grammar"
DEFAULT_GRAMMAR = "fmresultset"
ENDPOINT_PATH = "fmi/xml/"
CONTAINER_PREFIX = "/fmi/xml/cnt"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"
PRIVILEGE_HEADER = "X-FMI-PE-ExtendedPrivilege"
PRIVILEGE_TOKEN = "IrG6U+Rx0F5bLIQCUb9gOw=="

_SERVICES_DOWN = " - The Web Publishing Core and/or FileMaker Server services are not running."
_BAD_CREDENTIALS = (
    " - This can be due to an invalid username or password, or if the XML publishing"
    " privilege is not enabled for that user."
)

ParamValue = str | int | float | bool | None


class Connector(Protocol):
    """Interface implemented by server connectors."""

    last_requested_url: str | None

    def execute(self, params: Mapping[str, ParamValue]) -> Result[bytes]:
        """Send a query and return the XML payload."""

    def get_container_data(self, path: str) -> Result[bytes]:
        """Fetch the raw bytes behind a container field path."""


class XmlConnector:
    """Talks to ``<host>/fmi/xml/<grammar>.xml`` over form-encoded POSTs.

    The configuration is read on every call, so property changes made by
    the owning client apply to the next request.
    """

    def __init__(
        self,
        config: ConnectionConfig | Callable[[], ConnectionConfig],
        *,
        session: SessionContext | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self.session = session or SessionContext()
        self._transport = transport or HttpTransport()
        self.last_requested_url: str | None = None

    @property
    def config(self) -> ConnectionConfig:
        if callable(self._config):
            return self._config()
        return self._config

    def execute(self, params: Mapping[str, ParamValue]) -> Result[bytes]:
        config = self.config
        if not self._transport.available:
            return Result.fail(_transport_unavailable())

        remaining = dict(params)
        grammar = remaining.pop(GRAMMAR_KEY, None) or DEFAULT_GRAMMAR
        body = encode_params(remaining, config.charset)
        url = endpoint_url(config.normalized_host, str(grammar))
        LOG.info("Request for %s", url)

        headers = {
            "Content-Type": FORM_CONTENT_TYPE,
            PRIVILEGE_HEADER: PRIVILEGE_TOKEN,
        }
        headers.update(self._session_headers(config))

        self.last_requested_url = f"{url}?{body}"
        LOG.debug("Composed request %s", self.last_requested_url)
        outcome = self._transport.send(
            url,
            method="POST",
            headers=headers,
            body=body,
            options=config.transport_options,
            capture_headers=config.capture_headers,
        )
        LOG.debug("Raw response %r", outcome.raw)
        if not outcome.ok:
            return Result.fail(self._failure(url, outcome))

        if config.use_cookie_session:
            sync_session_cookie(outcome.raw, self.session)
        payload = strip_xml_framing(outcome.raw) if config.capture_headers else outcome.raw
        return Result.ok(payload)

    def get_container_data(self, path: str) -> Result[bytes]:
        config = self.config
        if not self._transport.available:
            return Result.fail(_transport_unavailable())
        if not path.lower().startswith(CONTAINER_PREFIX):
            return Result.fail(
                FileMakerError(
                    ErrorKind.UNSUPPORTED_REMOTE_CONTAINER,
                    "get_container_data() does not support remote containers",
                )
            )

        url = container_url(config.container_host, path)
        LOG.info("Request for %s", url)
        headers = {PRIVILEGE_HEADER: PRIVILEGE_TOKEN}
        headers.update(self._session_headers(config))

        self.last_requested_url = url
        LOG.debug("Composed request %s", url)
        outcome = self._transport.send(
            url,
            method="GET",
            headers=headers,
            options=config.transport_options,
            capture_headers=config.capture_headers,
        )
        LOG.debug("Raw response %r", outcome.raw)
        if not outcome.ok:
            return Result.fail(self._failure(url, outcome))

        if config.use_cookie_session:
            sync_session_cookie(outcome.raw, self.session)
        if config.capture_headers:
            LOG.debug("Container payload", extra={"content_length": content_length(outcome.raw)})
            payload = strip_container_framing(outcome.raw)
        else:
            payload = outcome.raw
        LOG.debug("Container data %r", payload)
        return Result.ok(payload)

    def _session_headers(self, config: ConnectionConfig) -> dict[str, str]:
        headers: dict[str, str] = {}
        if config.username:
            headers["Authorization"] = basic_auth_header(config.username, config.password)
        if config.use_cookie_session:
            cookie = self.session.cookie_header()
            if cookie is not None:
                headers["Cookie"] = cookie
        return headers

    def _failure(self, url: str, outcome: TransportOutcome) -> FileMakerError:
        error = classify_transport_failure(outcome)
        LOG.warning(
            "Request failed",
            extra={"url": url, "code": outcome.code, "kind": error.kind.value},
        )
        return error


def encode_params(params: Mapping[str, ParamValue], charset: str = "utf-8") -> str:
    """Form-encode parameters; ``True`` values produce a bare key."""

    transcode = not _is_utf8(charset)
    pairs: list[str] = []
    for key, value in params.items():
        encoded_key = quote_plus(str(key))
        if value is True:
            pairs.append(encoded_key)
            continue
        if value is None or value is False:
            text = ""
        else:
            text = str(value)
        if transcode:
            encoded_value = quote_plus(text, encoding=charset, errors="replace")
        else:
            encoded_value = quote_plus(text)
        pairs.append(f"{encoded_key}={encoded_value}")
    return "&".join(pairs)


def endpoint_url(host: str, grammar: str = DEFAULT_GRAMMAR) -> str:
    return f"{host}{ENDPOINT_PATH}{grammar}.xml"


def container_url(host: str, path: str) -> str:
    """Absolute URL for a container path served by the same host."""

    return html.unescape(host + path).replace(" ", "%20")


def basic_auth_header(username: str, password: str | None) -> str:
    """Basic credentials, encoded as Latin-1 for the web publishing engine.

    Characters outside Latin-1 are sent as ``?``.
    """

    credentials = f"{username}:{password or ''}".encode("latin-1", errors="replace")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def classify_transport_failure(outcome: TransportOutcome) -> FileMakerError:
    """Map a failed transport outcome onto an error kind."""

    message = f"Communication Error: ({outcome.code}) {outcome.message}"
    if outcome.code == TransportErrorCode.GOT_NOTHING:
        return FileMakerError(ErrorKind.SERVICE_DOWN, message + _SERVICES_DOWN, code=outcome.code)
    if outcome.code == TransportErrorCode.HTTP_RETURNED_ERROR:
        # Only a 50x status text separates a stopped engine from refused credentials.
        if "50" in outcome.message:
            return FileMakerError(ErrorKind.SERVICE_DOWN_ALT, message + _SERVICES_DOWN, code=outcome.code)
        return FileMakerError(ErrorKind.AUTH_OR_PRIVILEGE, message + _BAD_CREDENTIALS, code=outcome.code)
    return FileMakerError(ErrorKind.TRANSPORT, message, code=outcome.code)


def _transport_unavailable() -> FileMakerError:
    return FileMakerError(
        ErrorKind.TRANSPORT_UNAVAILABLE,
        "An HTTP transport is required to use the XML connector.",
    )


def _is_utf8(charset: str) -> bool:
    return charset.strip().lower().replace("_", "-") in {"utf-8", "utf8"}


__all__ = [
    "CONTAINER_PREFIX",
    "DEFAULT_GRAMMAR",
    "Connector",
    "GRAMMAR_KEY",
    "PRIVILEGE_HEADER",
    "PRIVILEGE_TOKEN",
    "XmlConnector",
    "basic_auth_header",
    "classify_transport_failure",
    "container_url",
    "encode_params",
    "endpoint_url",
]
