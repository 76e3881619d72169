"""Field and portal metadata shared by layouts and grammar parsers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol

from .errors import ErrorKind, FileMakerError
from .result import Result


@dataclass(slots=True)
class Field:
    """Description of one field as published on a layout."""

    name: str
    result: str = "text"
    type: str = "normal"
    repetition_count: int = 1
    global_field: bool = False
    max_characters: int | None = None
    style_type: str | None = None
    value_list: str | None = None


class MetadataNode(Protocol):
    """Anything that owns fields and, possibly, nested related sets."""

    name: str

    @property
    def fields(self) -> Mapping[str, Field]: ...

    @property
    def related_sets(self) -> Mapping[str, MetadataNode]: ...


class RelatedSet:
    """Fields of one portal (related table occurrence) on a layout."""

    def __init__(self, name: str, fields: Mapping[str, Field] | None = None) -> None:
        self.name = name
        self.fields: dict[str, Field] = dict(fields or {})
        self.related_sets: dict[str, MetadataNode] = {}

    def add_field(self, item: Field) -> None:
        self.fields[item.name] = item

    def list_fields(self) -> list[str]:
        return list(self.fields)

    def get_fields(self) -> dict[str, Field]:
        return dict(self.fields)

    def get_field(self, name: str) -> Result[Field]:
        return resolve_field(self, name)

    def __repr__(self) -> str:
        return f"RelatedSet({self.name!r}, fields={list(self.fields)!r})"


def resolve_field(node: MetadataNode, path: str) -> Result[Field]:
    """Find a field by exact name or by ``relatedSet:field`` address.

    Portal fields are looked up under the full address first, then under
    the part after the related set name, then as ``Table::field``.
    """

    found = node.fields.get(path)
    if found is not None:
        return Result.ok(found)
    prefix, separator, rest = path.partition(":")
    if not separator or not prefix:
        return Result.fail(_field_not_found(path))
    child = node.related_sets.get(prefix)
    if child is None and prefix == node.name:
        child = node
    if child is None:
        return Result.fail(
            FileMakerError(
                ErrorKind.RELATED_SET_NOT_FOUND,
                f'RelatedSet "{prefix}" Not Found in layout {node.name}',
            )
        )
    found = child.fields.get(path)
    if found is not None:
        return Result.ok(found)
    rest = rest.lstrip(":")
    for candidate in (rest, f"{child.name}::{rest}"):
        found = child.fields.get(candidate)
        if found is not None:
            return Result.ok(found)
    if ":" in rest and child.related_sets:
        return resolve_field(child, rest)
    return Result.fail(_field_not_found(path))


def _field_not_found(path: str) -> FileMakerError:
    return FileMakerError(ErrorKind.FIELD_NOT_FOUND, f'Field "{path}" Not Found')


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """Display attributes reported by the layout-info grammar."""

    name: str
    style_type: str | None = None
    value_list: str | None = None


@dataclass(frozen=True, slots=True)
class LayoutInfo:
    """Parsed extended layout information."""

    fields: Mapping[str, FieldInfo] = field(default_factory=dict)
    value_lists: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    value_lists_two_fields: Mapping[str, tuple[tuple[str, str], ...]] = field(default_factory=dict)


class LayoutInfoParser(Protocol):
    """Turns a layout-info grammar payload into `LayoutInfo`.

    Implementations raise `MetadataParseError` on unreadable payloads.
    """

    def parse(self, payload: bytes) -> LayoutInfo: ...


__all__ = [
    "Field",
    "FieldInfo",
    "LayoutInfo",
    "LayoutInfoParser",
    "MetadataNode",
    "RelatedSet",
    "resolve_field",
]
