from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from oasdelta.config import DiffConfig
from oasdelta.spec.models import OpenAPI, PathItem

from .base import (
    DeltaModel,
    ExtensionsDiff,
    ValueDiff,
    get_extensions_diff,
    get_model_value_diff,
    get_value_diff,
)
from .breaking import remove_non_breaking
from .content import HeadersDiff, get_headers_diff
from .metadata import (
    InfoDiff,
    ServersDiff,
    TagsDiff,
    get_info_diff,
    get_servers_diff,
    get_tags_diff,
)
from .operations import CallbacksDiff, PathsDiff, get_callbacks_diff, get_paths_diff
from .parameters import ParameterMapDiff, get_parameter_map_diff
from .request_body import RequestBodiesDiff, get_request_bodies_diff
from .responses import ResponsesDiff, get_responses_diff
from .schema import SchemasDiff, get_schemas_diff
from .security import (
    SecurityRequirementsDiff,
    SecuritySchemesDiff,
    get_security_requirements_diff,
    get_security_schemes_diff,
)
from .state import DiffState
from .summary import Summary, get_summary

logger = logging.getLogger(__name__)


class Diff(DeltaModel):
    """Root delta between a base and a revision specification."""

    extensions: Optional[ExtensionsDiff] = None
    openapi: Optional[ValueDiff] = Field(default=None, alias="openAPI")
    info: Optional[InfoDiff] = None
    paths: Optional[PathsDiff] = None
    security: Optional[SecurityRequirementsDiff] = None
    servers: Optional[ServersDiff] = None
    tags: Optional[TagsDiff] = None
    external_docs: Optional[ValueDiff] = Field(default=None, alias="externalDocs")

    schemas: Optional[SchemasDiff] = None
    parameters: Optional[ParameterMapDiff] = None
    headers: Optional[HeadersDiff] = None
    request_bodies: Optional[RequestBodiesDiff] = Field(
        default=None, alias="requestBodies"
    )
    responses: Optional[ResponsesDiff] = None
    security_schemes: Optional[SecuritySchemesDiff] = Field(
        default=None, alias="securitySchemes"
    )
    callbacks: Optional[CallbacksDiff] = None

    def get_summary(self) -> Summary:
        return get_summary(self)


def filter_paths(
    config: DiffConfig, paths: dict[str, PathItem], strip_prefix: bool
) -> dict[str, PathItem]:
    """
    Normalizes path keys: strips the configured prefix (base document only)
    and drops paths that do not match the configured filter.
    """

    matcher = config.path_matcher()
    prefix = config.path_prefix
    result: dict[str, PathItem] = {}

    for path, path_item in paths.items():
        if strip_prefix and prefix and path.startswith(prefix):
            path = path[len(prefix) :]
        if matcher is not None and not matcher.search(path):
            logger.debug("path %s excluded by filter %s", path, config.path_filter)
            continue
        result[path] = path_item

    return result


def get_diff(config: DiffConfig, base: OpenAPI, revision: OpenAPI) -> Diff:
    """
    Compares two specifications. Neither input is modified.

    Raises MalformedReferenceError when an element still holds an unresolved
    reference; no partial result is returned in that case.
    """

    state = DiffState(
        config=config,
        base_security=base.security,
        revision_security=revision.security,
    )
    diff = _get_diff_internal(state, base, revision)
    logger.debug(
        "compared %d schema pairs (%d cache hits)",
        len(state.schema_cache),
        state.schema_cache.hits,
    )

    if config.breaking_only:
        remove_non_breaking(diff)

    return diff


def _get_diff_internal(state: DiffState, base: OpenAPI, revision: OpenAPI) -> Diff:
    config = state.config
    components1 = base.components
    components2 = revision.components

    return Diff(
        extensions=get_extensions_diff(base.extensions, revision.extensions),
        openapi=get_value_diff(base.openapi, revision.openapi),
        info=get_info_diff(state, base.info, revision.info),
        paths=get_paths_diff(
            state,
            filter_paths(config, base.paths, strip_prefix=True),
            filter_paths(config, revision.paths, strip_prefix=False),
        ),
        security=get_security_requirements_diff(base.security, revision.security),
        servers=get_servers_diff(state, base.servers, revision.servers),
        tags=get_tags_diff(state, base.tags, revision.tags),
        external_docs=get_model_value_diff(base.externalDocs, revision.externalDocs),
        schemas=get_schemas_diff(state, components1.schemas, components2.schemas),
        parameters=get_parameter_map_diff(
            state, components1.parameters, components2.parameters
        ),
        headers=get_headers_diff(state, components1.headers, components2.headers),
        request_bodies=get_request_bodies_diff(
            state, components1.requestBodies, components2.requestBodies
        ),
        responses=get_responses_diff(
            state, components1.responses, components2.responses
        ),
        security_schemes=get_security_schemes_diff(
            state, components1.securitySchemes, components2.securitySchemes
        ),
        callbacks=get_callbacks_diff(
            state, components1.callbacks, components2.callbacks
        ),
    )
