from __future__ import annotations

from typing import TYPE_CHECKING

from .base import Direction, MapDiff, or_none
from .content import prune_headers
from .metadata import prune_info, prune_servers, prune_tags
from .operations import prune_callbacks, prune_paths
from .parameters import prune_parameter_map
from .request_body import prune_request_bodies
from .responses import prune_responses
from .schema import prune_schemas
from .security import prune_security_requirements, prune_security_schemes

if TYPE_CHECKING:
    from .document import Diff


def _drop_added(diff: MapDiff | None) -> MapDiff | None:
    # a new component is only used through the paths that reference it
    if diff is None:
        return None
    diff.added = []
    return or_none(diff)


def remove_non_breaking(diff: Diff) -> Diff:
    """
    Prunes a root delta, in place, down to the changes that can break an
    existing client. Direction is threaded explicitly: paths start on the
    request side and each element switches it where it enters a response.
    """

    diff.extensions = None
    diff.openapi = None
    diff.external_docs = None
    diff.info = prune_info(diff.info)
    diff.tags = prune_tags(diff.tags)

    diff.paths = prune_paths(diff.paths, Direction.REQUEST)
    diff.security = prune_security_requirements(diff.security)
    diff.servers = prune_servers(diff.servers)

    diff.schemas = _drop_added(prune_schemas(diff.schemas, Direction.NONE))
    diff.parameters = prune_parameter_map(diff.parameters, Direction.REQUEST)
    diff.headers = _drop_added(prune_headers(diff.headers, Direction.NONE))
    diff.request_bodies = prune_request_bodies(diff.request_bodies, Direction.REQUEST)
    diff.responses = prune_responses(diff.responses, Direction.RESPONSE)
    diff.security_schemes = prune_security_schemes(diff.security_schemes)
    diff.callbacks = prune_callbacks(diff.callbacks, Direction.RESPONSE)

    return diff
