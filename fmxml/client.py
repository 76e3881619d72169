"""Client object holding connection properties and the layout cache."""

from __future__ import annotations

import logging
from typing import Mapping, TypeVar

from .config import ConnectionConfig
from .connector import GRAMMAR_KEY, ParamValue, XmlConnector
from .errors import FileMakerError
from .layout import Layout
from .metadata import Field, LayoutInfoParser, MetadataNode
from .result import Result, deliver
from .session import SessionContext
from .transport import Transport

LOG = logging.getLogger(__name__)

T = TypeVar("T")


class FileMakerClient:
    """Entry point wiring configuration, session and connector together.

    Failures of every operation, layout lookups included, are returned as
    `FileMakerError` objects when the ``error_handling`` property is
    ``"default"`` and raised otherwise; the property is read on every call.
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        *,
        transport: Transport | None = None,
        session: SessionContext | None = None,
        layout_parser: LayoutInfoParser | None = None,
    ) -> None:
        self.config = config or ConnectionConfig()
        self.session = session or SessionContext()
        self.layout_parser = layout_parser
        self.connector = XmlConnector(lambda: self.config, session=self.session, transport=transport)
        self._layouts: dict[str, Layout] = {}

    @property
    def last_requested_url(self) -> str | None:
        return self.connector.last_requested_url

    def get_property(self, name: str) -> object:
        return getattr(self.config, name)

    def set_property(self, name: str, value: object) -> None:
        if name not in ConnectionConfig.model_fields:
            raise ValueError(f"Unknown property '{name}'.")
        self.config = self.config.with_property(**{name: value})

    def execute_result(
        self, params: Mapping[str, ParamValue], grammar: str | None = None
    ) -> Result[bytes]:
        """Run a query and hand back the raw `Result`."""

        request = dict(params)
        if grammar:
            request[GRAMMAR_KEY] = grammar
        return self.connector.execute(request)

    def execute(
        self, params: Mapping[str, ParamValue], grammar: str | None = None
    ) -> bytes | FileMakerError:
        return self._deliver(self.execute_result(params, grammar))

    def get_container_data(self, path: str) -> bytes | FileMakerError:
        return self._deliver(self.connector.get_container_data(path))

    def get_field(self, layout: str, name: str) -> Field | FileMakerError:
        return self._deliver(self.layout(layout).get_field(name))

    def get_related_set(self, layout: str, name: str) -> MetadataNode | FileMakerError:
        return self._deliver(self.layout(layout).get_related_set(name))

    def list_value_lists(self, layout: str) -> list[str] | FileMakerError:
        return self._deliver(self.layout(layout).list_value_lists())

    def get_value_list(
        self, layout: str, name: str, record_id: str | int | None = None
    ) -> list[str] | None | FileMakerError:
        return self._deliver(self.layout(layout).get_value_list(name, record_id))

    def get_value_list_two_fields(
        self, layout: str, name: str, record_id: str | int | None = None
    ) -> list[tuple[str, str]] | FileMakerError:
        return self._deliver(self.layout(layout).get_value_list_two_fields(name, record_id))

    def get_value_lists(
        self, layout: str, record_id: str | int | None = None
    ) -> dict[str, list[str]] | FileMakerError:
        return self._deliver(self.layout(layout).get_value_lists(record_id))

    def get_value_lists_two_fields(
        self, layout: str, record_id: str | int | None = None
    ) -> dict[str, list[tuple[str, str]]] | FileMakerError:
        return self._deliver(self.layout(layout).get_value_lists_two_fields(record_id))

    def load_extended_info(
        self, layout: str, record_id: str | int | None = None
    ) -> bool | FileMakerError:
        return self._deliver(self.layout(layout).load_extended_info(record_id))

    def layout(self, name: str) -> Layout:
        """Cached layout description, or a new empty one bound to this client."""

        cached = self.cache_get(name)
        if cached is not None:
            return cached
        return Layout(self, name, database=self.config.database)

    def cache_get(self, name: str) -> Layout | None:
        return self._layouts.get(name)

    def cache_set(self, name: str, layout: Layout) -> None:
        LOG.debug("Caching layout", extra={"layout": name})
        self._layouts[name] = layout

    def cache_clear(self) -> None:
        self._layouts.clear()

    def _deliver(self, result: Result[T]) -> T | FileMakerError:
        return deliver(result, self.config.error_handling)


__all__ = ["FileMakerClient"]
