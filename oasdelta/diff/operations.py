from __future__ import annotations

from typing import Optional

from pydantic import Field

from oasdelta.spec.models import Operation, PathItem

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    StringsDiff,
    ValueDiff,
    deref,
    get_extensions_diff,
    get_map_diff,
    get_model_value_diff,
    get_strings_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .metadata import ServersDiff, get_servers_diff, prune_servers
from .parameters import ParametersDiff, get_parameters_diff, prune_parameters
from .request_body import RequestBodyDiff, get_request_body_diff, prune_request_body
from .responses import ResponsesDiff, get_responses_diff, prune_responses
from .security import (
    SecurityRequirementsDiff,
    get_security_requirements_diff,
    prune_security_requirements,
)
from .state import DiffState


class OperationDiff(DeltaModel):
    """Changes between a pair of operation objects."""

    extensions: Optional[ExtensionsDiff] = None
    tags: Optional[StringsDiff] = None
    summary: Optional[ValueDiff] = None
    description: Optional[ValueDiff] = None
    external_docs: Optional[ValueDiff] = Field(default=None, alias="externalDocs")
    operation_id: Optional[ValueDiff] = Field(default=None, alias="operationID")
    parameters: Optional[ParametersDiff] = None
    request_body: Optional[RequestBodyDiff] = Field(default=None, alias="requestBody")
    responses: Optional[ResponsesDiff] = None
    callbacks: Optional[CallbacksDiff] = None
    deprecated: Optional[ValueDiff] = None
    security: Optional[SecurityRequirementsDiff] = None
    servers: Optional[ServersDiff] = None


class OperationsDiff(MapDiff):
    """Operations keyed by uppercase HTTP method."""

    modified: dict[str, OperationDiff] = Field(default_factory=dict)


class PathDiff(DeltaModel):
    """Changes between a pair of path items."""

    extensions: Optional[ExtensionsDiff] = None
    summary: Optional[ValueDiff] = None
    description: Optional[ValueDiff] = None
    operations: Optional[OperationsDiff] = None
    servers: Optional[ServersDiff] = None
    parameters: Optional[ParametersDiff] = None


class PathsDiff(MapDiff):
    """Path items keyed by path (or by callback expression)."""

    modified: dict[str, PathDiff] = Field(default_factory=dict)


class CallbacksDiff(MapDiff):
    """Callbacks keyed by name; each callback is a map of expressions to path items."""

    modified: dict[str, PathsDiff] = Field(default_factory=dict)


def get_operation_diff(
    state: DiffState, operation1: Operation, operation2: Operation
) -> Optional[OperationDiff]:
    config = state.config

    diff = OperationDiff(
        extensions=get_extensions_diff(operation1.extensions, operation2.extensions),
        tags=get_strings_diff(operation1.tags, operation2.tags),
        summary=get_value_diff(operation1.summary, operation2.summary),
        description=get_value_diff_conditional(
            config.exclude_description, operation1.description, operation2.description
        ),
        external_docs=get_model_value_diff(
            operation1.externalDocs, operation2.externalDocs
        ),
        operation_id=get_value_diff(operation1.operationId, operation2.operationId),
        parameters=get_parameters_diff(
            state, operation1.parameters, operation2.parameters
        ),
        request_body=get_request_body_diff(
            state, operation1.requestBody, operation2.requestBody
        ),
        responses=get_responses_diff(state, operation1.responses, operation2.responses),
        callbacks=get_callbacks_diff(state, operation1.callbacks, operation2.callbacks),
        deprecated=get_value_diff(operation1.deprecated, operation2.deprecated),
        security=get_operation_security_diff(state, operation1, operation2),
        servers=get_servers_diff(state, operation1.servers, operation2.servers),
    )
    return or_none(diff)


def get_operation_security_diff(
    state: DiffState, operation1: Operation, operation2: Operation
) -> Optional[SecurityRequirementsDiff]:
    """
    Compares the requirements each operation actually enforces. `security:
    None` inherits the document-level list while `security: []` makes the
    operation public, so both are resolved before comparing. When both
    operations inherit, the change is reported once at the document level.
    """

    if operation1.security is None and operation2.security is None:
        return None

    security1 = operation1.security
    if security1 is None:
        security1 = state.base_security
    security2 = operation2.security
    if security2 is None:
        security2 = state.revision_security
    return get_security_requirements_diff(security1, security2)


def get_operations_diff(
    state: DiffState, path_item1: PathItem, path_item2: PathItem
) -> Optional[OperationsDiff]:
    return get_map_diff(
        OperationsDiff,
        dict(path_item1.operations()),
        dict(path_item2.operations()),
        lambda o1, o2: get_operation_diff(state, o1, o2),
    )


def get_path_diff(
    state: DiffState, path_item1: PathItem, path_item2: PathItem
) -> Optional[PathDiff]:
    path_item1 = deref(path_item1, "path item")
    path_item2 = deref(path_item2, "path item")

    diff = PathDiff(
        extensions=get_extensions_diff(path_item1.extensions, path_item2.extensions),
        summary=get_value_diff(path_item1.summary, path_item2.summary),
        description=get_value_diff_conditional(
            state.config.exclude_description,
            path_item1.description,
            path_item2.description,
        ),
        operations=get_operations_diff(state, path_item1, path_item2),
        servers=get_servers_diff(state, path_item1.servers, path_item2.servers),
        parameters=get_parameters_diff(
            state, path_item1.parameters, path_item2.parameters
        ),
    )
    return or_none(diff)


def get_paths_diff(
    state: DiffState,
    paths1: Optional[dict[str, PathItem]],
    paths2: Optional[dict[str, PathItem]],
) -> Optional[PathsDiff]:
    return get_map_diff(
        PathsDiff, paths1, paths2, lambda p1, p2: get_path_diff(state, p1, p2)
    )


def get_callbacks_diff(
    state: DiffState,
    callbacks1: Optional[dict[str, dict[str, PathItem]]],
    callbacks2: Optional[dict[str, dict[str, PathItem]]],
) -> Optional[CallbacksDiff]:
    return get_map_diff(
        CallbacksDiff,
        callbacks1,
        callbacks2,
        lambda c1, c2: get_paths_diff(state, c1, c2),
    )


# ==================== BREAKING CHANGES ====================
#
# `direction` is the side the operation's request lives on: REQUEST for the
# API's own operations, RESPONSE inside callbacks where the API is the caller.


def _prune_added_deleted(diff: MapDiff, direction: Direction) -> None:
    if direction is Direction.REQUEST:
        diff.added = []
    elif direction is Direction.RESPONSE:
        diff.deleted = []


def prune_operation(
    diff: Optional[OperationDiff], direction: Direction = Direction.REQUEST
) -> Optional[OperationDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.tags = None
    diff.summary = None
    diff.description = None
    diff.external_docs = None
    diff.deprecated = None

    diff.parameters = prune_parameters(diff.parameters, direction)
    diff.request_body = prune_request_body(diff.request_body, direction)
    diff.responses = prune_responses(diff.responses, direction.invert())
    diff.callbacks = prune_callbacks(diff.callbacks, direction.invert())
    diff.security = prune_security_requirements(diff.security, direction)
    diff.servers = prune_servers(diff.servers, direction)
    return or_none(diff)


def prune_operations(
    diff: Optional[OperationsDiff], direction: Direction = Direction.REQUEST
) -> Optional[OperationsDiff]:
    if diff is None:
        return None

    _prune_added_deleted(diff, direction)
    prune_modified(diff, lambda d: prune_operation(d, direction))
    return or_none(diff)


def prune_path(
    diff: Optional[PathDiff], direction: Direction = Direction.REQUEST
) -> Optional[PathDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.summary = None
    diff.description = None
    diff.operations = prune_operations(diff.operations, direction)
    diff.servers = prune_servers(diff.servers, direction)
    diff.parameters = prune_parameters(diff.parameters, direction)
    return or_none(diff)


def prune_paths(
    diff: Optional[PathsDiff], direction: Direction = Direction.REQUEST
) -> Optional[PathsDiff]:
    if diff is None:
        return None

    _prune_added_deleted(diff, direction)
    prune_modified(diff, lambda d: prune_path(d, direction))
    return or_none(diff)


def prune_callbacks(
    diff: Optional[CallbacksDiff], direction: Direction = Direction.RESPONSE
) -> Optional[CallbacksDiff]:
    if diff is None:
        return None

    _prune_added_deleted(diff, direction)
    prune_modified(diff, lambda d: prune_paths(d, direction))
    return or_none(diff)


OperationDiff.model_rebuild()
