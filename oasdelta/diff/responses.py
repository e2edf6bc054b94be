from __future__ import annotations

from typing import Optional

from pydantic import Field

from oasdelta.spec.models import Response

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    ValueDiff,
    deref,
    get_extensions_diff,
    get_map_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .content import (
    ContentDiff,
    HeadersDiff,
    get_content_diff,
    get_headers_diff,
    prune_content,
    prune_headers,
)
from .state import DiffState


class ResponseDiff(DeltaModel):
    """Changes between a pair of response objects."""

    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    headers: Optional[HeadersDiff] = None
    content: Optional[ContentDiff] = None
    links: Optional[ValueDiff] = None


class ResponsesDiff(MapDiff):
    """Responses keyed by status code (or "default")."""

    modified: dict[str, ResponseDiff] = Field(default_factory=dict)


def get_response_diff(
    state: DiffState, response1: Response, response2: Response
) -> Optional[ResponseDiff]:
    response1 = deref(response1, "response")
    response2 = deref(response2, "response")

    diff = ResponseDiff(
        extensions=get_extensions_diff(response1.extensions, response2.extensions),
        description=get_value_diff_conditional(
            state.config.exclude_description,
            response1.description,
            response2.description,
        ),
        headers=get_headers_diff(state, response1.headers, response2.headers),
        content=get_content_diff(state, response1.content, response2.content),
        links=get_value_diff(response1.links, response2.links),
    )
    return or_none(diff)


def get_responses_diff(
    state: DiffState,
    responses1: Optional[dict[str, Response]],
    responses2: Optional[dict[str, Response]],
) -> Optional[ResponsesDiff]:
    return get_map_diff(
        ResponsesDiff,
        responses1,
        responses2,
        lambda r1, r2: get_response_diff(state, r1, r2),
    )


# ==================== BREAKING CHANGES ====================


def prune_response(
    diff: Optional[ResponseDiff], direction: Direction = Direction.RESPONSE
) -> Optional[ResponseDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.description = None
    diff.links = None
    diff.headers = prune_headers(diff.headers, direction)
    diff.content = prune_content(diff.content, direction)
    return or_none(diff)


def prune_responses(
    diff: Optional[ResponsesDiff], direction: Direction = Direction.RESPONSE
) -> Optional[ResponsesDiff]:
    if diff is None:
        return None

    # clients never depended on a status code that did not exist
    diff.added = []
    prune_modified(diff, lambda d: prune_response(d, direction))
    return or_none(diff)
