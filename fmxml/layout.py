"""Layout description model with lazily loaded extended information."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Protocol

from .config import ConnectionConfig
from .errors import ErrorKind, FileMakerError
from .metadata import Field, LayoutInfo, LayoutInfoParser, MetadataNode, RelatedSet, resolve_field
from .result import Result

LOG = logging.getLogger(__name__)

LAYOUT_INFO_GRAMMAR = "FMPXMLLAYOUT"


class LayoutCacheState(str, Enum):
    """How much extended information a layout currently holds."""

    UNLOADED = "unloaded"
    BASE_LOADED = "base_loaded"
    RECORD_SCOPED = "record_scoped"


def next_cache_state(state: LayoutCacheState, record_id: str | int | None) -> LayoutCacheState:
    """State after an extended-info load; record-scoped loads never downgrade a base load."""

    if record_id is None:
        return LayoutCacheState.BASE_LOADED
    if state is LayoutCacheState.BASE_LOADED:
        return LayoutCacheState.BASE_LOADED
    return LayoutCacheState.RECORD_SCOPED


class LayoutHost(Protocol):
    """Client services a layout needs to load its extended information."""

    config: ConnectionConfig
    layout_parser: LayoutInfoParser | None

    def execute_result(self, params: Mapping[str, object], grammar: str | None = None) -> Result[bytes]: ...

    def cache_set(self, name: str, layout: Layout) -> None: ...


class Layout:
    """Everything known about one layout of one database.

    Fields and related sets come from the result-set grammar; value lists
    and field display attributes are fetched on first use.
    """

    def __init__(
        self,
        host: LayoutHost,
        name: str | None = None,
        *,
        database: str | None = None,
        table: str | None = None,
    ) -> None:
        self.host = host
        self.name = name
        self.database = database
        self.table = table
        self.fields: dict[str, Field] = {}
        self.related_sets: dict[str, MetadataNode] = {}
        self.value_lists: dict[str, list[str]] = {}
        self.value_lists_two_fields: dict[str, list[tuple[str, str]]] = {}
        self.state = LayoutCacheState.UNLOADED

    @property
    def extended(self) -> bool:
        return self.state is LayoutCacheState.BASE_LOADED

    def add_field(self, item: Field) -> None:
        self.fields[item.name] = item

    def add_related_set(self, related_set: RelatedSet) -> None:
        self.related_sets[related_set.name] = related_set

    def list_fields(self) -> list[str]:
        return list(self.fields)

    def get_fields(self) -> dict[str, Field]:
        return dict(self.fields)

    def get_field(self, name: str) -> Result[Field]:
        """Look up a field, following ``relatedSet:field`` addresses into portals."""

        return resolve_field(self, name)

    def list_related_sets(self) -> list[str]:
        return list(self.related_sets)

    def get_related_sets(self) -> dict[str, MetadataNode]:
        return dict(self.related_sets)

    def has_related_set(self, name: str) -> bool:
        return name in self.related_sets

    def get_related_set(self, name: str) -> Result[MetadataNode]:
        related_set = self.related_sets.get(name)
        if related_set is None:
            return Result.fail(
                FileMakerError(
                    ErrorKind.RELATED_SET_NOT_FOUND,
                    f'RelatedSet "{name}" Not Found in layout {self.name}',
                )
            )
        return Result.ok(related_set)

    def list_value_lists(self) -> Result[list[str]]:
        loaded = self.load_extended_info()
        if loaded.is_error:
            return Result.fail(loaded.error)
        return Result.ok(list(self.value_lists))

    def get_value_list(self, name: str, record_id: str | int | None = None) -> Result[list[str] | None]:
        """Values of one list; ``None`` when the layout has no such list."""

        loaded = self.load_extended_info(record_id)
        if loaded.is_error:
            return Result.fail(loaded.error)
        return Result.ok(self.value_lists.get(name))

    def get_value_list_two_fields(
        self, name: str, record_id: str | int | None = None
    ) -> Result[list[tuple[str, str]]]:
        """(display, value) pairs of one list; empty when the list is unknown."""

        loaded = self.load_extended_info(record_id)
        if loaded.is_error:
            return Result.fail(loaded.error)
        return Result.ok(self.value_lists_two_fields.get(name, []))

    def get_value_lists(self, record_id: str | int | None = None) -> Result[dict[str, list[str]]]:
        loaded = self.load_extended_info(record_id)
        if loaded.is_error:
            return Result.fail(loaded.error)
        return Result.ok(dict(self.value_lists))

    def get_value_lists_two_fields(
        self, record_id: str | int | None = None
    ) -> Result[dict[str, list[tuple[str, str]]]]:
        loaded = self.load_extended_info(record_id)
        if loaded.is_error:
            return Result.fail(loaded.error)
        return Result.ok(dict(self.value_lists_two_fields))

    def load_extended_info(self, record_id: str | int | None = None) -> Result[bool]:
        """Fetch value lists and field display attributes from the server.

        Without a record id the result is cached: later calls are no-ops and
        the layout is stored in the client's layout cache. A record id always
        triggers a request, since conditional value lists depend on it.
        """

        if self.extended and record_id is None:
            return Result.ok(True)

        params: dict[str, object] = {
            "-db": self.database or self.host.config.database,
            "-lay": self.name,
        }
        if record_id is not None:
            params["-recid"] = record_id
        params["-view"] = None
        LOG.debug("Loading extended layout info", extra={"layout": self.name, "record_id": record_id})

        response = self.host.execute_result(params, LAYOUT_INFO_GRAMMAR)
        if response.is_error:
            return Result.fail(response.error)
        parser = self.host.layout_parser
        if parser is None:
            return Result.fail(
                FileMakerError(ErrorKind.METADATA_PARSE, "No layout info parser is configured.")
            )
        try:
            info = parser.parse(response.value or b"")
        except FileMakerError as exc:
            return Result.fail(exc)

        self.apply(info, record_id=record_id)
        if record_id is None:
            self.host.cache_set(self.name or "", self)
        return Result.ok(self.extended)

    def apply(self, info: LayoutInfo, *, record_id: str | int | None = None) -> Layout:
        """Copy parsed extended information onto this layout."""

        for name, field_info in info.fields.items():
            found = resolve_field(self, name)
            if found.is_error:
                continue
            target = found.value
            if field_info.style_type is not None:
                target.style_type = field_info.style_type
            if field_info.value_list is not None:
                target.value_list = field_info.value_list
        self.value_lists = {name: list(values) for name, values in info.value_lists.items()}
        self.value_lists_two_fields = {
            name: list(pairs) for name, pairs in info.value_lists_two_fields.items()
        }
        self.state = next_cache_state(self.state, record_id)
        return self

    def __repr__(self) -> str:
        return f"Layout({self.name!r}, database={self.database!r}, state={self.state.value!r})"


__all__ = [
    "LAYOUT_INFO_GRAMMAR",
    "Layout",
    "LayoutCacheState",
    "LayoutHost",
    "next_cache_state",
]
