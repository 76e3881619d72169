"""Web publishing session cookie state."""

from __future__ import annotations

import httpx

SESSION_COOKIE = "WPCSessionID"


class SessionContext:
    """Holds the session token issued by the web publishing engine.

    The token is read before each request and written after each response
    that carries a new value. The outbound cookie store mirrors the token
    so an embedding web application can hand it on to its own clients.
    Access is not synchronized; share one context per thread of requests.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token
        self.outbound_cookies = httpx.Cookies()
        if token is not None:
            self.outbound_cookies.set(SESSION_COOKIE, token)

    @property
    def token(self) -> str | None:
        return self._token

    def remember(self, token: str) -> bool:
        """Store a token; returns ``True`` when it differs from the known one."""

        if token == self._token:
            return False
        self._token = token
        self.outbound_cookies.set(SESSION_COOKIE, token)
        return True

    def clear(self) -> None:
        """Forget the token, e.g. after the session was terminated."""

        self._token = None
        self.outbound_cookies.delete(SESSION_COOKIE)

    def cookie_header(self) -> str | None:
        """Value for an outbound ``Cookie`` header, if a token is known."""

        if self._token is None:
            return None
        return f"{SESSION_COOKIE}={self._token}"


__all__ = ["SESSION_COOKIE", "SessionContext"]
