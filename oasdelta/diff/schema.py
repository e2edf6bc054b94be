from __future__ import annotations

import logging
from numbers import Number
from typing import Any, Optional

from pydantic import Field

from oasdelta.spec.models import Schema

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    StringsDiff,
    ValueDiff,
    deref,
    equal_values,
    get_extensions_diff,
    get_map_diff,
    get_model_value_diff,
    get_strings_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .state import IN_PROGRESS, DiffState

logger = logging.getLogger(__name__)


class EnumDiff(DeltaModel):
    added: list[Any] = Field(default_factory=list)
    deleted: list[Any] = Field(default_factory=list)


def get_enum_diff(
    enum1: Optional[list[Any]], enum2: Optional[list[Any]]
) -> Optional[EnumDiff]:
    # enum values may be unhashable (objects, arrays)
    values1 = enum1 or []
    values2 = enum2 or []

    def contains(values: list[Any], value: Any) -> bool:
        return any(equal_values(value, v) for v in values)

    return or_none(
        EnumDiff(
            added=[v for v in values2 if not contains(values1, v)],
            deleted=[v for v in values1 if not contains(values2, v)],
        )
    )


class SchemaDiff(DeltaModel):
    """Changes between a pair of schema objects."""

    schema_added: bool = Field(default=False, alias="schemaAdded")
    schema_deleted: bool = Field(default=False, alias="schemaDeleted")
    extensions: Optional[ExtensionsDiff] = None
    one_of: Optional[SchemaListDiff] = Field(default=None, alias="oneOf")
    any_of: Optional[SchemaListDiff] = Field(default=None, alias="anyOf")
    all_of: Optional[SchemaListDiff] = Field(default=None, alias="allOf")
    not_: Optional[SchemaDiff] = Field(default=None, alias="not")
    type: Optional[ValueDiff] = None
    title: Optional[ValueDiff] = None
    format: Optional[ValueDiff] = None
    description: Optional[ValueDiff] = None
    enum: Optional[EnumDiff] = None
    default: Optional[ValueDiff] = None
    example: Optional[ValueDiff] = None
    external_docs: Optional[ValueDiff] = Field(default=None, alias="externalDocs")
    additional_properties_allowed: Optional[ValueDiff] = Field(
        default=None, alias="additionalPropertiesAllowed"
    )
    unique_items: Optional[ValueDiff] = Field(default=None, alias="uniqueItems")
    exclusive_min: Optional[ValueDiff] = Field(default=None, alias="exclusiveMin")
    exclusive_max: Optional[ValueDiff] = Field(default=None, alias="exclusiveMax")
    nullable: Optional[ValueDiff] = None
    read_only: Optional[ValueDiff] = Field(default=None, alias="readOnly")
    write_only: Optional[ValueDiff] = Field(default=None, alias="writeOnly")
    deprecated: Optional[ValueDiff] = None
    min: Optional[ValueDiff] = None
    max: Optional[ValueDiff] = None
    multiple_of: Optional[ValueDiff] = Field(default=None, alias="multipleOf")
    min_length: Optional[ValueDiff] = Field(default=None, alias="minLength")
    max_length: Optional[ValueDiff] = Field(default=None, alias="maxLength")
    pattern: Optional[ValueDiff] = None
    min_items: Optional[ValueDiff] = Field(default=None, alias="minItems")
    max_items: Optional[ValueDiff] = Field(default=None, alias="maxItems")
    items: Optional[SchemaDiff] = None
    required: Optional[StringsDiff] = None
    properties: Optional[SchemasDiff] = None
    min_props: Optional[ValueDiff] = Field(default=None, alias="minProps")
    max_props: Optional[ValueDiff] = Field(default=None, alias="maxProps")
    additional_properties: Optional[SchemaDiff] = Field(
        default=None, alias="additionalProperties"
    )
    discriminator: Optional[ValueDiff] = None


class SchemasDiff(MapDiff):
    """Schemas keyed by name (component schemas, object properties)."""

    modified: dict[str, SchemaDiff] = Field(default_factory=dict)


class SchemaListDiff(DeltaModel):
    """
    Positional delta of a composition list (allOf/anyOf/oneOf). Members are
    paired by index, not by best match.
    """

    added: list[int] = Field(default_factory=list)
    deleted: list[int] = Field(default_factory=list)
    modified: dict[int, SchemaDiff] = Field(default_factory=dict)


def _allows_additional(schema: Schema) -> bool:
    return schema.additionalProperties is not False


def _additional_schema(schema: Schema) -> Optional[Schema]:
    if isinstance(schema.additionalProperties, Schema):
        return schema.additionalProperties
    return None


def get_schema_diff(
    state: DiffState, schema1: Optional[Schema], schema2: Optional[Schema]
) -> Optional[SchemaDiff]:
    if schema1 is None and schema2 is None:
        return None

    if schema1 is None:
        return SchemaDiff(schema_added=True)

    if schema2 is None:
        return SchemaDiff(schema_deleted=True)

    value1 = deref(schema1, "schema")
    value2 = deref(schema2, "schema")

    cache = state.schema_cache
    if (value1, value2) in cache:
        cached = cache.get(value1, value2)
        if cached is IN_PROGRESS:
            logger.debug("schema cycle detected, assuming no change")
            return None
        return cached

    cache.start(value1, value2)
    diff = or_none(_get_schema_diff_internal(state, value1, value2))
    # final even when a cycle was cut below: changes reachable only through an
    # ancestor still in progress are missing here, and every later visit of
    # this pair reuses the incomplete result
    cache.finish(value1, value2, diff)
    return diff


def _get_schema_diff_internal(
    state: DiffState, schema1: Schema, schema2: Schema
) -> SchemaDiff:
    config = state.config

    return SchemaDiff(
        extensions=get_extensions_diff(schema1.extensions, schema2.extensions),
        one_of=get_schema_list_diff(state, schema1.oneOf, schema2.oneOf),
        any_of=get_schema_list_diff(state, schema1.anyOf, schema2.anyOf),
        all_of=get_schema_list_diff(state, schema1.allOf, schema2.allOf),
        not_=get_schema_diff(state, schema1.not_, schema2.not_),
        type=get_value_diff(schema1.type, schema2.type),
        title=get_value_diff(schema1.title, schema2.title),
        format=get_value_diff(schema1.format, schema2.format),
        description=get_value_diff_conditional(
            config.exclude_description, schema1.description, schema2.description
        ),
        enum=get_enum_diff(schema1.enum, schema2.enum),
        default=get_value_diff(schema1.default, schema2.default),
        example=get_value_diff_conditional(
            not config.include_examples, schema1.example, schema2.example
        ),
        external_docs=get_model_value_diff(
            schema1.externalDocs, schema2.externalDocs
        ),
        additional_properties_allowed=get_value_diff(
            _allows_additional(schema1), _allows_additional(schema2)
        ),
        unique_items=get_value_diff(schema1.uniqueItems, schema2.uniqueItems),
        exclusive_min=get_value_diff(
            schema1.exclusiveMinimum, schema2.exclusiveMinimum
        ),
        exclusive_max=get_value_diff(
            schema1.exclusiveMaximum, schema2.exclusiveMaximum
        ),
        nullable=get_value_diff(schema1.nullable, schema2.nullable),
        read_only=get_value_diff(schema1.readOnly, schema2.readOnly),
        write_only=get_value_diff(schema1.writeOnly, schema2.writeOnly),
        deprecated=get_value_diff(schema1.deprecated, schema2.deprecated),
        min=get_value_diff(schema1.minimum, schema2.minimum),
        max=get_value_diff(schema1.maximum, schema2.maximum),
        multiple_of=get_value_diff(schema1.multipleOf, schema2.multipleOf),
        min_length=get_value_diff(schema1.minLength, schema2.minLength),
        max_length=get_value_diff(schema1.maxLength, schema2.maxLength),
        pattern=get_value_diff(schema1.pattern, schema2.pattern),
        min_items=get_value_diff(schema1.minItems, schema2.minItems),
        max_items=get_value_diff(schema1.maxItems, schema2.maxItems),
        items=get_schema_diff(state, schema1.items, schema2.items),
        required=get_strings_diff(schema1.required, schema2.required),
        properties=get_schemas_diff(state, schema1.properties, schema2.properties),
        min_props=get_value_diff(schema1.minProperties, schema2.minProperties),
        max_props=get_value_diff(schema1.maxProperties, schema2.maxProperties),
        additional_properties=get_schema_diff(
            state, _additional_schema(schema1), _additional_schema(schema2)
        ),
        discriminator=get_model_value_diff(
            schema1.discriminator, schema2.discriminator
        ),
    )


def get_schemas_diff(
    state: DiffState,
    schemas1: Optional[dict[str, Schema]],
    schemas2: Optional[dict[str, Schema]],
) -> Optional[SchemasDiff]:
    return get_map_diff(
        SchemasDiff,
        schemas1,
        schemas2,
        lambda s1, s2: get_schema_diff(state, s1, s2),
    )


def get_schema_list_diff(
    state: DiffState, schemas1: list[Schema], schemas2: list[Schema]
) -> Optional[SchemaListDiff]:
    result = SchemaListDiff()

    for i in range(max(len(schemas1), len(schemas2))):
        if i >= len(schemas2):
            result.deleted.append(i)
        elif i >= len(schemas1):
            result.added.append(i)
        elif diff := get_schema_diff(state, schemas1[i], schemas2[i]):
            result.modified[i] = diff

    return or_none(result)


# ==================== BREAKING CHANGES ====================

UPPER_BOUNDS = ("max", "max_length", "max_items", "max_props")
LOWER_BOUNDS = ("min", "min_length", "min_items", "min_props")


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _relaxes(diff: ValueDiff, upper: bool) -> bool:
    """True if the bound moved so that more values are accepted."""

    if diff.to is None:
        return True
    if diff.from_ is None or not (_is_number(diff.from_) and _is_number(diff.to)):
        return False
    return diff.to > diff.from_ if upper else diff.to < diff.from_


def _prune_bounds(diff: SchemaDiff, direction: Direction) -> None:
    for name, upper in [(n, True) for n in UPPER_BOUNDS] + [
        (n, False) for n in LOWER_BOUNDS
    ]:
        bound: Optional[ValueDiff] = getattr(diff, name)
        if bound is None:
            continue
        relaxed = _relaxes(bound, upper)
        if (direction is Direction.REQUEST and relaxed) or (
            direction is Direction.RESPONSE and not relaxed
        ):
            setattr(diff, name, None)


def _prune_list(
    diff: Optional[SchemaListDiff], direction: Direction, widens_on_add: bool
) -> Optional[SchemaListDiff]:
    if diff is None:
        return None

    # anyOf/oneOf accept more with more members, allOf accepts less
    if direction is Direction.REQUEST:
        if widens_on_add:
            diff.added = []
        else:
            diff.deleted = []
    elif direction is Direction.RESPONSE:
        if widens_on_add:
            diff.deleted = []
        else:
            diff.added = []

    for i in list(diff.modified):
        _prune_schema_in_place(diff.modified[i], direction)
        if diff.modified[i].empty():
            del diff.modified[i]

    return or_none(diff)


def _prune_nested(
    diff: Optional[SchemaDiff], direction: Direction
) -> Optional[SchemaDiff]:
    if diff is None:
        return None
    _prune_schema_in_place(diff, direction)
    return or_none(diff)


def _prune_schema_in_place(diff: SchemaDiff, direction: Direction) -> None:
    # annotations never break a client
    diff.title = None
    diff.description = None
    diff.example = None
    diff.external_docs = None
    diff.extensions = None
    diff.deprecated = None

    if direction is Direction.REQUEST:
        if diff.enum is not None:
            diff.enum.added = []
        if diff.required is not None:
            diff.required.deleted = []
        if diff.properties is not None:
            diff.properties.added = []
        if diff.nullable is not None and diff.nullable.compare_with_default(
            False, True, False
        ):
            diff.nullable = None
        if diff.additional_properties_allowed is not None and (
            diff.additional_properties_allowed.compare_with_default(False, True, True)
        ):
            diff.additional_properties_allowed = None
    elif direction is Direction.RESPONSE:
        if diff.enum is not None:
            diff.enum.deleted = []
        if diff.required is not None:
            diff.required.added = []
        if diff.properties is not None:
            diff.properties.added = []
        if diff.nullable is not None and diff.nullable.compare_with_default(
            True, False, False
        ):
            diff.nullable = None
        if diff.additional_properties_allowed is not None and (
            diff.additional_properties_allowed.compare_with_default(True, False, True)
        ):
            diff.additional_properties_allowed = None

    if direction is not Direction.NONE:
        _prune_bounds(diff, direction)

    diff.enum = or_none(diff.enum)
    diff.required = or_none(diff.required)

    diff.one_of = _prune_list(diff.one_of, direction, widens_on_add=True)
    diff.any_of = _prune_list(diff.any_of, direction, widens_on_add=True)
    diff.all_of = _prune_list(diff.all_of, direction, widens_on_add=False)
    diff.not_ = _prune_nested(diff.not_, direction)
    diff.items = _prune_nested(diff.items, direction)
    diff.additional_properties = _prune_nested(diff.additional_properties, direction)

    if diff.properties is not None:
        prune_modified(diff.properties, lambda d: _prune_nested(d, direction))
        diff.properties = or_none(diff.properties)


def prune_schema(
    diff: Optional[SchemaDiff], direction: Direction
) -> Optional[SchemaDiff]:
    """
    Returns the breaking subset of a schema delta for the given side.

    Schema deltas are memoized and may be shared between a request and a
    response sub-tree, so the pruning works on a copy.
    """

    if diff is None:
        return None
    pruned = diff.model_copy(deep=True)
    _prune_schema_in_place(pruned, direction)
    return or_none(pruned)


def prune_schemas(
    diff: Optional[SchemasDiff], direction: Direction
) -> Optional[SchemasDiff]:
    if diff is None:
        return None
    prune_modified(diff, lambda d: prune_schema(d, direction))
    return or_none(diff)


SchemaDiff.model_rebuild()
SchemasDiff.model_rebuild()
SchemaListDiff.model_rebuild()
