"""Connection configuration and loading helpers."""

from __future__ import annotations

import codecs
from enum import Enum
from pathlib import Path
from typing import Any

import tomllib

from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_FILE = Path.home() / ".config" / "fmxml" / "config.toml"


class ErrorHandling(str, Enum):
    """How facade operations report failures."""

    DEFAULT = "default"
    EXCEPTION = "exception"


class ConnectionConfig(BaseModel):
    """Properties describing one Custom Web Publishing server connection."""

    hostspec: str = "http://127.0.0.1"
    database: str | None = None
    username: str | None = None
    password: str | None = None
    charset: str = "utf-8"
    use_cookie_session: bool = False
    capture_headers: bool = True
    error_handling: ErrorHandling = ErrorHandling.EXCEPTION
    transport_options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("charset")
    @classmethod
    def _known_charset(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"Unknown charset '{value}'") from exc
        return value

    @property
    def normalized_host(self) -> str:
        """Host spec ending with exactly one ``/``."""

        return normalize_host(self.hostspec)

    @property
    def container_host(self) -> str:
        """Host spec without its trailing ``/``, ready for absolute paths."""

        return self.normalized_host[:-1]

    def with_property(self, **updates: object) -> ConnectionConfig:
        """Return a validated copy with the given properties updated."""

        return type(self).model_validate({**self.model_dump(), **updates})


def normalize_host(hostspec: str) -> str:
    """Force a single trailing separator; idempotent."""

    return hostspec.rstrip("/") + "/"


def load_config(path: Path | None = None) -> ConnectionConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return ConnectionConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return ConnectionConfig()
    try:
        return ConnectionConfig(**data)
    except ValidationError:
        return ConnectionConfig()


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if not isinstance(raw, dict):
        return data
    section = raw.get("connection", raw)
    if not isinstance(section, dict):
        return data
    for key in ("hostspec", "database", "username", "password", "charset"):
        value = section.get(key)
        if isinstance(value, str):
            data[key] = value
    for key in ("use_cookie_session", "capture_headers"):
        value = section.get(key)
        if isinstance(value, bool):
            data[key] = value
    mode = section.get("error_handling")
    if isinstance(mode, str) and mode in {item.value for item in ErrorHandling}:
        data["error_handling"] = ErrorHandling(mode)
    options = section.get("transport_options")
    if isinstance(options, dict):
        data["transport_options"] = {str(key): value for key, value in options.items()}
    return data


__all__ = [
    "CONFIG_FILE",
    "ConnectionConfig",
    "ErrorHandling",
    "load_config",
    "normalize_host",
]
