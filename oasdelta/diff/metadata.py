from __future__ import annotations

from typing import Optional

from pydantic import Field

from oasdelta.spec.models import Info, Server, ServerVariable, Tag

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    StringsDiff,
    ValueDiff,
    get_extensions_diff,
    get_map_diff,
    get_model_value_diff,
    get_strings_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .state import DiffState

# ==================== TAGS ====================


class TagDiff(DeltaModel):
    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    external_docs: Optional[ValueDiff] = Field(default=None, alias="externalDocs")


class TagsDiff(MapDiff):
    """Tags keyed by name."""

    modified: dict[str, TagDiff] = Field(default_factory=dict)


def get_tag_diff(state: DiffState, tag1: Tag, tag2: Tag) -> Optional[TagDiff]:
    diff = TagDiff(
        extensions=get_extensions_diff(tag1.extensions, tag2.extensions),
        description=get_value_diff_conditional(
            state.config.exclude_description, tag1.description, tag2.description
        ),
        external_docs=get_model_value_diff(tag1.externalDocs, tag2.externalDocs),
    )
    return or_none(diff)


def get_tags_diff(
    state: DiffState, tags1: Optional[list[Tag]], tags2: Optional[list[Tag]]
) -> Optional[TagsDiff]:
    return get_map_diff(
        TagsDiff,
        {tag.name: tag for tag in tags1 or []},
        {tag.name: tag for tag in tags2 or []},
        lambda t1, t2: get_tag_diff(state, t1, t2),
    )


def prune_tags(
    diff: Optional[TagsDiff], direction: Direction = Direction.NONE
) -> Optional[TagsDiff]:
    # tags only group operations in documentation
    return None


# ==================== SERVERS ====================


class ServerDiff(DeltaModel):
    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    variables: Optional[VariablesDiff] = None


class ServersDiff(MapDiff):
    """Servers keyed by URL."""

    modified: dict[str, ServerDiff] = Field(default_factory=dict)


class VariableDiff(DeltaModel):
    extensions: Optional[ExtensionsDiff] = None
    default: Optional[ValueDiff] = None
    enum: Optional[StringsDiff] = None
    description: Optional[ValueDiff] = None


class VariablesDiff(MapDiff):
    modified: dict[str, VariableDiff] = Field(default_factory=dict)


def get_variable_diff(
    state: DiffState, variable1: ServerVariable, variable2: ServerVariable
) -> Optional[VariableDiff]:
    diff = VariableDiff(
        extensions=get_extensions_diff(variable1.extensions, variable2.extensions),
        default=get_value_diff(variable1.default, variable2.default),
        enum=get_strings_diff(variable1.enum, variable2.enum),
        description=get_value_diff_conditional(
            state.config.exclude_description,
            variable1.description,
            variable2.description,
        ),
    )
    return or_none(diff)


def get_server_diff(
    state: DiffState, server1: Server, server2: Server
) -> Optional[ServerDiff]:
    diff = ServerDiff(
        extensions=get_extensions_diff(server1.extensions, server2.extensions),
        description=get_value_diff_conditional(
            state.config.exclude_description, server1.description, server2.description
        ),
        variables=get_map_diff(
            VariablesDiff,
            server1.variables,
            server2.variables,
            lambda v1, v2: get_variable_diff(state, v1, v2),
        ),
    )
    return or_none(diff)


def get_servers_diff(
    state: DiffState,
    servers1: Optional[list[Server]],
    servers2: Optional[list[Server]],
) -> Optional[ServersDiff]:
    return get_map_diff(
        ServersDiff,
        {server.url: server for server in servers1 or []},
        {server.url: server for server in servers2 or []},
        lambda s1, s2: get_server_diff(state, s1, s2),
    )


def prune_servers(
    diff: Optional[ServersDiff], direction: Direction = Direction.NONE
) -> Optional[ServersDiff]:
    if diff is None:
        return None

    def prune_variable(variable: VariableDiff) -> Optional[VariableDiff]:
        variable.extensions = None
        variable.description = None
        return or_none(variable)

    def prune_server(server: ServerDiff) -> Optional[ServerDiff]:
        server.extensions = None
        server.description = None
        if server.variables is not None:
            prune_modified(server.variables, prune_variable)
            server.variables = or_none(server.variables)
        return or_none(server)

    diff.added = []
    prune_modified(diff, prune_server)
    return or_none(diff)


# ==================== INFO ====================


class InfoDiff(DeltaModel):
    extensions: Optional[ExtensionsDiff] = None
    title: Optional[ValueDiff] = None
    description: Optional[ValueDiff] = None
    terms_of_service: Optional[ValueDiff] = Field(default=None, alias="termsOfService")
    contact: Optional[ValueDiff] = None
    license: Optional[ValueDiff] = None
    version: Optional[ValueDiff] = None


def get_info_diff(state: DiffState, info1: Info, info2: Info) -> Optional[InfoDiff]:
    diff = InfoDiff(
        extensions=get_extensions_diff(info1.extensions, info2.extensions),
        title=get_value_diff(info1.title, info2.title),
        description=get_value_diff_conditional(
            state.config.exclude_description, info1.description, info2.description
        ),
        terms_of_service=get_value_diff(info1.termsOfService, info2.termsOfService),
        contact=get_value_diff(info1.contact, info2.contact),
        license=get_value_diff(info1.license, info2.license),
        version=get_value_diff(info1.version, info2.version),
    )
    return or_none(diff)


def prune_info(
    diff: Optional[InfoDiff], direction: Direction = Direction.NONE
) -> Optional[InfoDiff]:
    return None


ServerDiff.model_rebuild()
