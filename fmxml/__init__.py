"""Client for the FileMaker Custom Web Publishing XML interface."""

from __future__ import annotations

__version__ = "0.1.0"

from .client import FileMakerClient
from .config import ConnectionConfig, ErrorHandling, load_config
from .connector import Connector, XmlConnector
from .errors import ErrorKind, FileMakerError, MetadataParseError
from .layout import Layout, LayoutCacheState
from .metadata import Field, FieldInfo, LayoutInfo, LayoutInfoParser, RelatedSet
from .result import Result, deliver, is_error
from .session import SessionContext
from .transport import HttpTransport, Transport, TransportErrorCode, TransportOutcome

__all__ = [
    "ConnectionConfig",
    "Connector",
    "ErrorHandling",
    "ErrorKind",
    "Field",
    "FieldInfo",
    "FileMakerClient",
    "FileMakerError",
    "HttpTransport",
    "Layout",
    "LayoutCacheState",
    "LayoutInfo",
    "LayoutInfoParser",
    "MetadataParseError",
    "RelatedSet",
    "Result",
    "SessionContext",
    "Transport",
    "TransportErrorCode",
    "TransportOutcome",
    "XmlConnector",
    "__version__",
    "deliver",
    "is_error",
    "load_config",
]
