from __future__ import annotations

from typing import Final, Optional

from pydantic import Field, PrivateAttr

from oasdelta.spec.models import SecurityRequirement, SecurityScheme

from .base import (
    DeltaModel,
    Direction,
    ExtensionsDiff,
    MapDiff,
    StringsDiff,
    ValueDiff,
    deref,
    diff_collections,
    get_extensions_diff,
    get_map_diff,
    get_strings_diff,
    get_value_diff,
    get_value_diff_conditional,
    or_none,
    prune_modified,
)
from .state import DiffState

ANONYMOUS_REQUIREMENT: Final[str] = "{}"


# ==================== REQUIREMENTS ====================


class SecurityRequirementsDiff(DeltaModel):
    """
    Changes between two lists of security requirements.

    Requirements are alternatives; each one is identified by the names of its
    schemes ("api_key AND oauth"), or also by its scopes ("oauth[read]") when
    several alternatives share the same schemes. `modified` maps a requirement
    to the scope changes of each of its schemes.
    """

    added: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    modified: dict[str, dict[str, StringsDiff]] = Field(default_factory=dict)

    _base_empty: bool = PrivateAttr(default=False)
    _revision_empty: bool = PrivateAttr(default=False)

    def summary_counts(self) -> tuple[int, int, int]:
        return len(self.added), len(self.deleted), len(self.modified)


def get_security_requirement_id(
    requirement: SecurityRequirement, with_scopes: bool = False
) -> str:
    if not requirement:
        return ANONYMOUS_REQUIREMENT
    if with_scopes:
        return " AND ".join(
            f"{name}[{', '.join(sorted(requirement[name]))}]"
            for name in sorted(requirement)
        )
    return " AND ".join(sorted(requirement))


def _by_id(
    requirements: Optional[list[SecurityRequirement]],
) -> dict[str, list[SecurityRequirement]]:
    groups: dict[str, list[SecurityRequirement]] = {}
    for requirement in requirements or []:
        groups.setdefault(get_security_requirement_id(requirement), []).append(
            requirement
        )
    return groups


def get_security_scopes_diff(
    requirement1: SecurityRequirement, requirement2: SecurityRequirement
) -> dict[str, StringsDiff]:
    result: dict[str, StringsDiff] = {}
    for scheme, scopes1 in requirement1.items():
        if scheme in requirement2:
            if scopes_diff := get_strings_diff(scopes1, requirement2[scheme]):
                result[scheme] = scopes_diff
    return result


class _ScopesDelta(DeltaModel):
    scopes: dict[str, StringsDiff] = Field(default_factory=dict)


def get_security_requirements_diff(
    requirements1: Optional[list[SecurityRequirement]],
    requirements2: Optional[list[SecurityRequirement]],
) -> Optional[SecurityRequirementsDiff]:
    groups1 = _by_id(requirements1)
    groups2 = _by_id(requirements2)

    by_id1: dict[str, SecurityRequirement] = {}
    by_id2: dict[str, SecurityRequirement] = {}
    for key in {**groups1, **groups2}:
        group1 = groups1.get(key, [])
        group2 = groups2.get(key, [])
        if len(group1) <= 1 and len(group2) <= 1:
            by_id1.update({key: r for r in group1})
            by_id2.update({key: r for r in group2})
            continue
        # several alternatives use the same schemes: tell them apart by scopes
        for r in group1:
            by_id1[get_security_requirement_id(r, with_scopes=True)] = r
        for r in group2:
            by_id2[get_security_requirement_id(r, with_scopes=True)] = r

    delta = diff_collections(
        by_id1,
        by_id2,
        lambda r1, r2: _ScopesDelta(scopes=get_security_scopes_diff(r1, r2)),
    )

    result = SecurityRequirementsDiff(
        added=delta.added,
        deleted=delta.deleted,
        modified={key: value.scopes for key, value in delta.modified.items()},
    )
    result._base_empty = not by_id1
    result._revision_empty = not by_id2
    return or_none(result)


def prune_security_requirements(
    diff: Optional[SecurityRequirementsDiff], direction: Direction = Direction.NONE
) -> Optional[SecurityRequirementsDiff]:
    """
    A new alternative relaxes access unless there was no security before;
    dropping every requirement relaxes it too. Added scopes tighten access,
    deleted scopes relax it.
    """

    if diff is None:
        return None

    if not diff._base_empty:
        diff.added = []
    if diff._revision_empty:
        diff.deleted = []

    for key in list(diff.modified):
        scopes = diff.modified[key]
        for scheme in list(scopes):
            scopes[scheme].deleted = []
            if scopes[scheme].empty():
                del scopes[scheme]
        if not scopes:
            del diff.modified[key]

    return or_none(diff)


# ==================== SCHEMES ====================


class SecuritySchemeDiff(DeltaModel):
    """Changes between a pair of security scheme objects."""

    extensions: Optional[ExtensionsDiff] = None
    type: Optional[ValueDiff] = None
    description: Optional[ValueDiff] = None
    name: Optional[ValueDiff] = None
    security_scheme_in: Optional[ValueDiff] = Field(default=None, alias="in")
    scheme: Optional[ValueDiff] = None
    bearer_format: Optional[ValueDiff] = Field(default=None, alias="bearerFormat")
    flows: Optional[ValueDiff] = None
    open_id_connect_url: Optional[ValueDiff] = Field(
        default=None, alias="openIdConnectUrl"
    )


class SecuritySchemesDiff(MapDiff):
    modified: dict[str, SecuritySchemeDiff] = Field(default_factory=dict)


def get_security_scheme_diff(
    state: DiffState, scheme1: SecurityScheme, scheme2: SecurityScheme
) -> Optional[SecuritySchemeDiff]:
    scheme1 = deref(scheme1, "security scheme")
    scheme2 = deref(scheme2, "security scheme")

    diff = SecuritySchemeDiff(
        extensions=get_extensions_diff(scheme1.extensions, scheme2.extensions),
        type=get_value_diff(scheme1.type, scheme2.type),
        description=get_value_diff_conditional(
            state.config.exclude_description, scheme1.description, scheme2.description
        ),
        name=get_value_diff(scheme1.name, scheme2.name),
        security_scheme_in=get_value_diff(
            scheme1.security_scheme_in, scheme2.security_scheme_in
        ),
        scheme=get_value_diff(scheme1.scheme, scheme2.scheme),
        bearer_format=get_value_diff(scheme1.bearerFormat, scheme2.bearerFormat),
        flows=get_value_diff(scheme1.flows, scheme2.flows),
        open_id_connect_url=get_value_diff(
            scheme1.openIdConnectUrl, scheme2.openIdConnectUrl
        ),
    )
    return or_none(diff)


def get_security_schemes_diff(
    state: DiffState,
    schemes1: Optional[dict[str, SecurityScheme]],
    schemes2: Optional[dict[str, SecurityScheme]],
) -> Optional[SecuritySchemesDiff]:
    return get_map_diff(
        SecuritySchemesDiff,
        schemes1,
        schemes2,
        lambda s1, s2: get_security_scheme_diff(state, s1, s2),
    )


def prune_security_schemes(
    diff: Optional[SecuritySchemesDiff], direction: Direction = Direction.NONE
) -> Optional[SecuritySchemesDiff]:
    if diff is None:
        return None

    def prune_scheme(scheme: SecuritySchemeDiff) -> Optional[SecuritySchemeDiff]:
        scheme.extensions = None
        scheme.description = None
        return or_none(scheme)

    diff.added = []
    prune_modified(diff, prune_scheme)
    return or_none(diff)
