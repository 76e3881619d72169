"""Strip transport framing from raw responses and track the session cookie."""

from __future__ import annotations

import logging
import re

from .session import SESSION_COOKIE, SessionContext

LOG = logging.getLogger(__name__)

XML_MARKER = b"<?xml"
HEADER_SEPARATOR = b"\r\n\r\n"

_SESSION_COOKIE_RE = re.compile(rb'WPCSessionID="([^;]*)";', re.MULTILINE)
_CONTENT_LENGTH_RE = re.compile(rb"Content-Length: (\d+)", re.IGNORECASE)


def strip_xml_framing(raw: bytes) -> bytes:
    """Drop everything ahead of the XML declaration; unchanged if there is none."""

    position = raw.find(XML_MARKER)
    if position == -1:
        return raw
    return raw[position:]


def strip_container_framing(raw: bytes) -> bytes:
    """Drop the header block up to the first blank line; unchanged if there is none."""

    position = raw.find(HEADER_SEPARATOR)
    if position == -1:
        return raw
    return raw[position + len(HEADER_SEPARATOR):]


def find_session_cookie(raw: bytes) -> str | None:
    match = _SESSION_COOKIE_RE.search(raw)
    if match is None:
        return None
    return match.group(1).decode("latin-1")


def sync_session_cookie(raw: bytes, session: SessionContext) -> bool:
    """Remember a session token announced in the response, if it changed."""

    token = find_session_cookie(raw)
    if token is None:
        return False
    changed = session.remember(token)
    if changed:
        LOG.debug("Session cookie updated", extra={"cookie": SESSION_COOKIE})
    return changed


def content_length(raw: bytes) -> int:
    """Declared ``Content-Length``, ``-1`` when the headers do not provide it."""

    head = raw.split(HEADER_SEPARATOR, 1)[0]
    match = _CONTENT_LENGTH_RE.search(head)
    if match is None:
        return -1
    return int(match.group(1))


__all__ = [
    "content_length",
    "find_session_cookie",
    "strip_container_framing",
    "strip_xml_framing",
    "sync_session_cookie",
]
