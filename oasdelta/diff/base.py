from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Mapping, Optional, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field

from oasdelta.errors import MalformedReferenceError

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")
D = TypeVar("D", bound="DeltaModel")


class Direction(str, Enum):
    """Which side of an exchange a sub-tree describes."""

    NONE = "none"
    REQUEST = "request"
    RESPONSE = "response"

    def invert(self) -> "Direction":
        if self is Direction.REQUEST:
            return Direction.RESPONSE
        if self is Direction.RESPONSE:
            return Direction.REQUEST
        return self


def _is_empty_value(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, DeltaModel):
        return value.empty()
    if isinstance(value, (list, dict, set, tuple)):
        return len(value) == 0
    return False


class DeltaModel(BaseModel):
    """
    Base of every delta node.

    A node is empty iff each of its fields is in the "no change" state:
    None, False, an empty container or an empty nested delta.
    """

    model_config = ConfigDict(validate_by_name=True)

    def empty(self) -> bool:
        return all(
            _is_empty_value(getattr(self, name)) for name in type(self).model_fields
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=True)

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.to_dict(),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )

    def to_json(self, indent: int = 1) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def or_none(diff: Optional[D]) -> Optional[D]:
    if diff is None or diff.empty():
        return None
    return diff


class ValueDiff(DeltaModel):
    """A before/after pair for a scalar field."""

    from_: Any = Field(alias="from")
    to: Any

    def empty(self) -> bool:
        return False

    def compare_with_default(self, from_: Any, to: Any, default: Any) -> bool:
        """
        True if this change goes from `from_` to `to`, reading a missing
        (None) side as `default`.
        """

        before = default if self.from_ is None else self.from_
        after = default if self.to is None else self.to
        return equal_values(before, from_) and equal_values(after, to)


def equal_values(value1: Any, value2: Any) -> bool:
    # True == 1 in python, but a boolean bound is not a numeric one
    if isinstance(value1, bool) != isinstance(value2, bool):
        return False
    return value1 == value2


def get_value_diff(value1: Any, value2: Any) -> Optional[ValueDiff]:
    if equal_values(value1, value2):
        return None
    return ValueDiff(from_=value1, to=value2)


def get_value_diff_conditional(
    exclude: bool, value1: Any, value2: Any
) -> Optional[ValueDiff]:
    if exclude:
        return None
    return get_value_diff(value1, value2)


def get_model_value_diff(
    model1: Optional[BaseModel], model2: Optional[BaseModel]
) -> Optional[ValueDiff]:
    """Compares small leaf objects (externalDocs, discriminator) by value."""

    def dump(model: Optional[BaseModel]) -> Any:
        if model is None:
            return None
        return model.model_dump(mode="json", by_alias=True, exclude_none=True)

    return get_value_diff(dump(model1), dump(model2))


class StringsDiff(DeltaModel):
    added: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)


def get_strings_diff(
    strings1: Optional[list[str]], strings2: Optional[list[str]]
) -> Optional[StringsDiff]:
    set1 = set(strings1 or [])
    set2 = set(strings2 or [])
    diff = StringsDiff(added=sorted(set2 - set1), deleted=sorted(set1 - set2))
    return or_none(diff)


@dataclass
class CollectionDelta:
    added: list[Any] = field(default_factory=list)
    deleted: list[Any] = field(default_factory=list)
    modified: dict[Any, Any] = field(default_factory=dict)


def diff_collections(
    items1: Mapping[K, T],
    items2: Mapping[K, T],
    differ: Callable[[T, T], Optional[DeltaModel]],
) -> CollectionDelta:
    """
    Partitions the keys of two collections into added, deleted and common;
    common keys are diffed with `differ` and kept only if they changed.
    Added and deleted keys are sorted.
    """

    result = CollectionDelta()

    for key, value1 in items1.items():
        if key in items2:
            diff = differ(value1, items2[key])
            if diff is not None and not diff.empty():
                result.modified[key] = diff
        else:
            result.deleted.append(key)

    for key in items2:
        if key not in items1:
            result.added.append(key)

    result.added.sort(key=str)
    result.deleted.sort(key=str)
    return result


class MapDiff(DeltaModel):
    """
    Delta of a keyed collection. Subclasses declare `modified` with the
    element delta type.
    """

    added: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    modified: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_collection(cls, delta: CollectionDelta):
        return cls(
            added=[str(k) for k in delta.added],
            deleted=[str(k) for k in delta.deleted],
            modified={str(k): v for k, v in delta.modified.items()},
        )

    def summary_counts(self) -> tuple[int, int, int]:
        return len(self.added), len(self.deleted), len(self.modified)


def get_map_diff(
    cls: type[MapDiff],
    items1: Optional[Mapping[str, T]],
    items2: Optional[Mapping[str, T]],
    differ: Callable[[T, T], Optional[DeltaModel]],
):
    delta = diff_collections(items1 or {}, items2 or {}, differ)
    return or_none(cls.from_collection(delta))


def prune_modified(
    diff: MapDiff, pruner: Callable[[Any], Optional[DeltaModel]]
) -> None:
    """Applies `pruner` to each modified entry and drops entries it empties."""

    for key in list(diff.modified):
        pruned = pruner(diff.modified[key])
        if pruned is None or pruned.empty():
            del diff.modified[key]
        else:
            diff.modified[key] = pruned


class ExtensionsDiff(MapDiff):
    modified: dict[str, ValueDiff] = Field(default_factory=dict)


def get_extensions_diff(
    extensions1: Mapping[str, Any], extensions2: Mapping[str, Any]
) -> Optional[ExtensionsDiff]:
    return get_map_diff(ExtensionsDiff, extensions1, extensions2, get_value_diff)


def deref(element: Any, kind: str) -> Any:
    """Returns the concrete element or fails on a dangling $ref."""

    if element is None:
        raise MalformedReferenceError(kind)
    ref = getattr(element, "ref", None)
    if ref is not None:
        raise MalformedReferenceError(kind, ref)
    return element
