"""Error kinds surfaced by the connector and metadata model."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of failure reported to callers."""

    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    SERVICE_DOWN = "service_down"
    SERVICE_DOWN_ALT = "service_down_alt"
    AUTH_OR_PRIVILEGE = "auth_or_privilege"
    TRANSPORT = "transport"
    UNSUPPORTED_REMOTE_CONTAINER = "unsupported_remote_container"
    FIELD_NOT_FOUND = "field_not_found"
    RELATED_SET_NOT_FOUND = "related_set_not_found"
    METADATA_PARSE = "metadata_parse"


class FileMakerError(RuntimeError):
    """Raised (or returned, depending on the error mode) when an operation fails."""

    def __init__(self, kind: ErrorKind, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value!r}, {self.message!r}, code={self.code!r})"


class MetadataParseError(FileMakerError):
    """Raised by layout grammar parsers when a payload cannot be read."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(ErrorKind.METADATA_PARSE, message, code=code)


__all__ = ["ErrorKind", "FileMakerError", "MetadataParseError"]
