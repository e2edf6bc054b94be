from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from oasdelta.errors import AmbiguousMediaTypeError
from oasdelta.spec.models import Encoding, Header, MediaType

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
from .schema import SchemaDiff, get_schema_diff, prune_schema
from .state import DiffState

logger = logging.getLogger(__name__)


# ==================== HEADERS ====================


class HeaderDiff(DeltaModel):
    """Changes between a pair of header objects."""

    extensions: Optional[ExtensionsDiff] = None
    description: Optional[ValueDiff] = None
    deprecated: Optional[ValueDiff] = None
    required: Optional[ValueDiff] = None
    allow_empty_value: Optional[ValueDiff] = Field(
        default=None, alias="allowEmptyValue"
    )
    style: Optional[ValueDiff] = None
    explode: Optional[ValueDiff] = None
    schema_: Optional[SchemaDiff] = Field(default=None, alias="schema")
    example: Optional[ValueDiff] = None
    examples: Optional[ValueDiff] = None
    content: Optional[ContentDiff] = None


class HeadersDiff(MapDiff):
    modified: dict[str, HeaderDiff] = Field(default_factory=dict)


def get_header_diff(
    state: DiffState, header1: Header, header2: Header
) -> Optional[HeaderDiff]:
    header1 = deref(header1, "header")
    header2 = deref(header2, "header")
    config = state.config

    diff = HeaderDiff(
        extensions=get_extensions_diff(header1.extensions, header2.extensions),
        description=get_value_diff_conditional(
            config.exclude_description, header1.description, header2.description
        ),
        deprecated=get_value_diff(header1.deprecated, header2.deprecated),
        required=get_value_diff(header1.required, header2.required),
        allow_empty_value=get_value_diff(
            header1.allowEmptyValue, header2.allowEmptyValue
        ),
        style=get_value_diff(header1.style, header2.style),
        explode=get_value_diff(header1.explode, header2.explode),
        schema_=get_schema_diff(state, header1.schema_, header2.schema_),
        example=get_value_diff_conditional(
            not config.include_examples, header1.example, header2.example
        ),
        examples=get_value_diff_conditional(
            not config.include_examples, header1.examples, header2.examples
        ),
        content=get_content_diff(state, header1.content, header2.content),
    )
    return or_none(diff)


def get_headers_diff(
    state: DiffState,
    headers1: Optional[dict[str, Header]],
    headers2: Optional[dict[str, Header]],
) -> Optional[HeadersDiff]:
    return get_map_diff(
        HeadersDiff, headers1, headers2, lambda h1, h2: get_header_diff(state, h1, h2)
    )


def prune_header(
    diff: Optional[HeaderDiff], direction: Direction
) -> Optional[HeaderDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.description = None
    diff.example = None
    diff.examples = None
    diff.deprecated = None

    if diff.required is not None:
        # a request header becoming optional, or a response header becoming
        # guaranteed, is harmless
        if direction is Direction.REQUEST and diff.required.compare_with_default(
            True, False, False
        ):
            diff.required = None
        elif direction is Direction.RESPONSE and diff.required.compare_with_default(
            False, True, False
        ):
            diff.required = None

    diff.schema_ = prune_schema(diff.schema_, direction)
    diff.content = prune_content(diff.content, direction)
    return or_none(diff)


def prune_headers(
    diff: Optional[HeadersDiff], direction: Direction
) -> Optional[HeadersDiff]:
    if diff is None:
        return None

    if direction is Direction.RESPONSE:
        diff.added = []
    elif direction is Direction.REQUEST:
        diff.deleted = []

    prune_modified(diff, lambda d: prune_header(d, direction))
    return or_none(diff)


# ==================== ENCODING ====================


class EncodingDiff(DeltaModel):
    """Changes between a pair of encoding objects."""

    extensions: Optional[ExtensionsDiff] = None
    content_type: Optional[ValueDiff] = Field(default=None, alias="contentType")
    headers: Optional[HeadersDiff] = None
    style: Optional[ValueDiff] = None
    explode: Optional[ValueDiff] = None
    allow_reserved: Optional[ValueDiff] = Field(default=None, alias="allowReserved")


class EncodingsDiff(MapDiff):
    modified: dict[str, EncodingDiff] = Field(default_factory=dict)


def get_encoding_diff(
    state: DiffState, encoding1: Encoding, encoding2: Encoding
) -> Optional[EncodingDiff]:
    diff = EncodingDiff(
        extensions=get_extensions_diff(encoding1.extensions, encoding2.extensions),
        content_type=get_value_diff(encoding1.contentType, encoding2.contentType),
        headers=get_headers_diff(state, encoding1.headers, encoding2.headers),
        style=get_value_diff(encoding1.style, encoding2.style),
        explode=get_value_diff(encoding1.explode, encoding2.explode),
        allow_reserved=get_value_diff(encoding1.allowReserved, encoding2.allowReserved),
    )
    return or_none(diff)


def get_encodings_diff(
    state: DiffState,
    encodings1: Optional[dict[str, Encoding]],
    encodings2: Optional[dict[str, Encoding]],
) -> Optional[EncodingsDiff]:
    return get_map_diff(
        EncodingsDiff,
        encodings1,
        encodings2,
        lambda e1, e2: get_encoding_diff(state, e1, e2),
    )


def prune_encodings(
    diff: Optional[EncodingsDiff], direction: Direction
) -> Optional[EncodingsDiff]:
    if diff is None:
        return None

    def prune_encoding(encoding: EncodingDiff) -> Optional[EncodingDiff]:
        encoding.extensions = None
        encoding.headers = prune_headers(encoding.headers, direction)
        return or_none(encoding)

    prune_modified(diff, prune_encoding)
    return or_none(diff)


# ==================== MEDIA TYPES ====================


class MediaTypeDiff(DeltaModel):
    """Changes between a pair of media type objects."""

    extensions: Optional[ExtensionsDiff] = None
    schema_: Optional[SchemaDiff] = Field(default=None, alias="schema")
    example: Optional[ValueDiff] = None
    examples: Optional[ValueDiff] = None
    encoding: Optional[EncodingsDiff] = None


class ContentDiff(DeltaModel):
    """
    Changes between two content maps (media type name -> media type object).

    `mediaType` is only set by the single-media-type comparison, when the one
    media type of each side has a different name.
    """

    media_type_added: list[str] = Field(default_factory=list, alias="mediaTypeAdded")
    media_type_deleted: list[str] = Field(
        default_factory=list, alias="mediaTypeDeleted"
    )
    media_type_modified: dict[str, MediaTypeDiff] = Field(
        default_factory=dict, alias="mediaTypeModified"
    )
    media_type: Optional[ValueDiff] = Field(default=None, alias="mediaType")


def get_media_type_diff(
    state: DiffState, media_type1: MediaType, media_type2: MediaType
) -> Optional[MediaTypeDiff]:
    config = state.config
    diff = MediaTypeDiff(
        extensions=get_extensions_diff(
            media_type1.extensions, media_type2.extensions
        ),
        schema_=get_schema_diff(state, media_type1.schema_, media_type2.schema_),
        example=get_value_diff_conditional(
            not config.include_examples, media_type1.example, media_type2.example
        ),
        examples=get_value_diff_conditional(
            not config.include_examples, media_type1.examples, media_type2.examples
        ),
        encoding=get_encodings_diff(state, media_type1.encoding, media_type2.encoding),
    )
    return or_none(diff)


def get_media_type(content: dict[str, MediaType]) -> tuple[str, MediaType]:
    """Returns the single entry of a content map."""

    if len(content) != 1:
        raise AmbiguousMediaTypeError(len(content))
    return next(iter(content.items()))


def get_content_diff(
    state: DiffState,
    content1: Optional[dict[str, MediaType]],
    content2: Optional[dict[str, MediaType]],
) -> Optional[ContentDiff]:
    content1 = content1 or {}
    content2 = content2 or {}

    if state.config.single_media_type:
        return or_none(_get_single_content_diff(state, content1, content2))

    result = ContentDiff()
    for name, media_type1 in content1.items():
        if name in content2:
            if diff := get_media_type_diff(state, media_type1, content2[name]):
                result.media_type_modified[name] = diff
        else:
            result.media_type_deleted.append(name)

    result.media_type_added = sorted(name for name in content2 if name not in content1)
    result.media_type_deleted.sort()
    return or_none(result)


def _get_single_content_diff(
    state: DiffState,
    content1: dict[str, MediaType],
    content2: dict[str, MediaType],
) -> Optional[ContentDiff]:
    if not content1 and not content2:
        return None

    result = ContentDiff()

    if not content1:
        result.media_type_added = sorted(content2)
        return result

    if not content2:
        result.media_type_deleted = sorted(content1)
        return result

    try:
        name1, media_type1 = get_media_type(content1)
        name2, media_type2 = get_media_type(content2)
    except AmbiguousMediaTypeError as exc:
        logger.debug("skipping content comparison: %s", exc)
        return None

    if name1 != name2:
        result.media_type = ValueDiff(from_=name1, to=name2)
        return result

    if diff := get_media_type_diff(state, media_type1, media_type2):
        result.media_type_modified[name1] = diff
    return result


def prune_media_type(
    diff: Optional[MediaTypeDiff], direction: Direction
) -> Optional[MediaTypeDiff]:
    if diff is None:
        return None

    diff.extensions = None
    diff.example = None
    diff.examples = None
    diff.schema_ = prune_schema(diff.schema_, direction)
    diff.encoding = prune_encodings(diff.encoding, direction)
    return or_none(diff)


def prune_content(
    diff: Optional[ContentDiff], direction: Direction
) -> Optional[ContentDiff]:
    """
    Any media type change in a request is harmless: clients keep sending a
    type they already use, and a required body is judged by the request body
    rules. A response may start offering a new type (clients ignore it) but
    must not drop or rename one.
    """

    if diff is None:
        return None

    if direction is Direction.REQUEST:
        diff.media_type_added = []
        diff.media_type_deleted = []
        diff.media_type = None
    elif direction is Direction.RESPONSE:
        diff.media_type_added = []

    for name in list(diff.media_type_modified):
        pruned = prune_media_type(diff.media_type_modified[name], direction)
        if pruned is None:
            del diff.media_type_modified[name]
        else:
            diff.media_type_modified[name] = pruned

    return or_none(diff)


HeaderDiff.model_rebuild()
