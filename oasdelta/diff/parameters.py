from __future__ import annotations

from typing import Optional

from pydantic import Field, PrivateAttr

from oasdelta.spec.models import Parameter

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    ValueDiff,
    deref,
    diff_collections,
    get_extensions_diff,
    get_map_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .content import ContentDiff, get_content_diff, prune_content
from .schema import SchemaDiff, get_schema_diff, prune_schema
from .state import DiffState


class ParameterDiff(DeltaModel):
    """Changes between a pair of parameter objects."""

    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    style: Optional[ValueDiff] = None
    explode: Optional[ValueDiff] = None
    allow_empty_value: Optional[ValueDiff] = Field(
        default=None, alias="allowEmptyValue"
    )
    allow_reserved: Optional[ValueDiff] = Field(default=None, alias="allowReserved")
    deprecated: Optional[ValueDiff] = None
    required: Optional[ValueDiff] = None
    schema_: Optional[SchemaDiff] = Field(default=None, alias="schema")
    example: Optional[ValueDiff] = None
    examples: Optional[ValueDiff] = None
    content: Optional[ContentDiff] = None


class ParametersDiff(DeltaModel):
    """
    Changes between two parameter lists, grouped by location
    (path, query, header, cookie) and then by parameter name.
    """

    added: dict[str, list[str]] = Field(default_factory=dict)
    deleted: dict[str, list[str]] = Field(default_factory=dict)
    modified: dict[str, dict[str, ParameterDiff]] = Field(default_factory=dict)

    # (location, name) of added parameters that the revision marks required
    _required_added: set[tuple[str, str]] = PrivateAttr(default_factory=set)

    def summary_counts(self) -> tuple[int, int, int]:
        return (
            sum(len(names) for names in self.added.values()),
            sum(len(names) for names in self.deleted.values()),
            sum(len(params) for params in self.modified.values()),
        )


class ParameterMapDiff(MapDiff):
    """Component parameters keyed by component name."""

    modified: dict[str, ParameterDiff] = Field(default_factory=dict)


def get_parameter_diff(
    state: DiffState, param1: Parameter, param2: Parameter
) -> Optional[ParameterDiff]:
    param1 = deref(param1, "parameter")
    param2 = deref(param2, "parameter")
    config = state.config

    diff = ParameterDiff(
        extensions=get_extensions_diff(param1.extensions, param2.extensions),
        description=get_value_diff_conditional(
            config.exclude_description, param1.description, param2.description
        ),
        style=get_value_diff(param1.style, param2.style),
        explode=get_value_diff(param1.explode, param2.explode),
        allow_empty_value=get_value_diff(
            param1.allowEmptyValue, param2.allowEmptyValue
        ),
        allow_reserved=get_value_diff(param1.allowReserved, param2.allowReserved),
        deprecated=get_value_diff(param1.deprecated, param2.deprecated),
        required=get_value_diff(param1.required, param2.required),
        schema_=get_schema_diff(state, param1.schema_, param2.schema_),
        example=get_value_diff_conditional(
            not config.include_examples, param1.example, param2.example
        ),
        examples=get_value_diff_conditional(
            not config.include_examples, param1.examples, param2.examples
        ),
        content=get_content_diff(state, param1.content, param2.content),
    )
    return or_none(diff)


def _by_key(params: Optional[list[Parameter]]) -> dict[tuple[str, str], Parameter]:
    result: dict[tuple[str, str], Parameter] = {}
    for param in params or []:
        param = deref(param, "parameter")
        result[param.key()] = param
    return result


def get_parameters_diff(
    state: DiffState,
    params1: Optional[list[Parameter]],
    params2: Optional[list[Parameter]],
) -> Optional[ParametersDiff]:
    by_key1 = _by_key(params1)
    by_key2 = _by_key(params2)

    delta = diff_collections(
        by_key1, by_key2, lambda p1, p2: get_parameter_diff(state, p1, p2)
    )

    result = ParametersDiff()
    for location, name in delta.added:
        result.added.setdefault(location, []).append(name)
        if by_key2[(location, name)].required:
            result._required_added.add((location, name))
    for location, name in delta.deleted:
        result.deleted.setdefault(location, []).append(name)
    for (location, name), diff in delta.modified.items():
        result.modified.setdefault(location, {})[name] = diff

    return or_none(result)


def get_parameter_map_diff(
    state: DiffState,
    params1: Optional[dict[str, Parameter]],
    params2: Optional[dict[str, Parameter]],
) -> Optional[ParameterMapDiff]:
    return get_map_diff(
        ParameterMapDiff,
        params1,
        params2,
        lambda p1, p2: get_parameter_diff(state, p1, p2),
    )


# ==================== BREAKING CHANGES ====================


def prune_parameter(
    diff: Optional[ParameterDiff], direction: Direction = Direction.REQUEST
) -> Optional[ParameterDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.description = None
    diff.example = None
    diff.examples = None
    diff.deprecated = None

    # only "required enabled" is breaking
    if diff.required is not None and not diff.required.compare_with_default(
        False, True, False
    ):
        diff.required = None

    diff.schema_ = prune_schema(diff.schema_, direction)
    diff.content = prune_content(diff.content, direction)
    return or_none(diff)


def prune_parameters(
    diff: Optional[ParametersDiff], direction: Direction = Direction.REQUEST
) -> Optional[ParametersDiff]:
    if diff is None:
        return None

    for location in list(diff.added):
        names = [
            name
            for name in diff.added[location]
            if (location, name) in diff._required_added
        ]
        if names:
            diff.added[location] = names
        else:
            del diff.added[location]

    for location in list(diff.modified):
        params = diff.modified[location]
        for name in list(params):
            pruned = prune_parameter(params[name], direction)
            if pruned is None:
                del params[name]
            else:
                params[name] = pruned
        if not params:
            del diff.modified[location]

    return or_none(diff)


def prune_parameter_map(
    diff: Optional[ParameterMapDiff], direction: Direction = Direction.REQUEST
) -> Optional[ParameterMapDiff]:
    if diff is None:
        return None
    diff.added = []
    prune_modified(diff, lambda d: prune_parameter(d, direction))
    return or_none(diff)
