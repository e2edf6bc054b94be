from __future__ import annotations

from typing import Optional

from pydantic import Field, PrivateAttr

from oasdelta.spec.models import RequestBody

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
from .content import ContentDiff, get_content_diff, prune_content
from .state import DiffState


class RequestBodyDiff(DeltaModel):
    """Changes between a pair of request body objects."""

    added: bool = False
    deleted: bool = False
    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    required: Optional[ValueDiff] = None
    content: Optional[ContentDiff] = None

    # whether an added body is required by the revision
    _added_required: bool = PrivateAttr(default=False)


class RequestBodiesDiff(MapDiff):
    """Component request bodies keyed by name."""

    modified: dict[str, RequestBodyDiff] = Field(default_factory=dict)


def get_request_body_diff(
    state: DiffState,
    request_body1: Optional[RequestBody],
    request_body2: Optional[RequestBody],
) -> Optional[RequestBodyDiff]:
    if request_body1 is None and request_body2 is None:
        return None

    if request_body1 is None:
        body2 = deref(request_body2, "request body")
        result = RequestBodyDiff(added=True)
        result._added_required = body2.required
        return result

    if request_body2 is None:
        return RequestBodyDiff(deleted=True)

    body1 = deref(request_body1, "request body")
    body2 = deref(request_body2, "request body")

    diff = RequestBodyDiff(
        extensions=get_extensions_diff(body1.extensions, body2.extensions),
        description=get_value_diff_conditional(
            state.config.exclude_description, body1.description, body2.description
        ),
        required=get_value_diff(body1.required, body2.required),
        content=get_content_diff(state, body1.content, body2.content),
    )
    return or_none(diff)


def get_request_bodies_diff(
    state: DiffState,
    bodies1: Optional[dict[str, RequestBody]],
    bodies2: Optional[dict[str, RequestBody]],
) -> Optional[RequestBodiesDiff]:
    return get_map_diff(
        RequestBodiesDiff,
        bodies1,
        bodies2,
        lambda b1, b2: get_request_body_diff(state, b1, b2),
    )


# ==================== BREAKING CHANGES ====================


def prune_request_body(
    diff: Optional[RequestBodyDiff], direction: Direction = Direction.REQUEST
) -> Optional[RequestBodyDiff]:
    if diff is None:
        return None

    # an added body only breaks clients when they are forced to send it
    if diff.added and not diff._added_required:
        diff.added = False

    diff.extensions = None
    diff.description = None

    # only "required enabled" is breaking
    if diff.required is not None and not diff.required.compare_with_default(
        False, True, False
    ):
        diff.required = None

    diff.content = prune_content(diff.content, direction)
    return or_none(diff)


def prune_request_bodies(
    diff: Optional[RequestBodiesDiff], direction: Direction = Direction.REQUEST
) -> Optional[RequestBodiesDiff]:
    if diff is None:
        return None
    diff.added = []
    prune_modified(diff, lambda d: prune_request_body(d, direction))
    return or_none(diff)
