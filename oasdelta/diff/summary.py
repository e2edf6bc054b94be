from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, Field

PATHS: Final[str] = "paths"
SECURITY: Final[str] = "security"
SERVERS: Final[str] = "servers"
TAGS: Final[str] = "tags"
SCHEMAS: Final[str] = "schemas"
PARAMETERS: Final[str] = "parameters"
HEADERS: Final[str] = "headers"
REQUEST_BODIES: Final[str] = "requestBodies"
RESPONSES: Final[str] = "responses"
SECURITY_SCHEMES: Final[str] = "securitySchemes"
CALLBACKS: Final[str] = "callbacks"
INFO: Final[str] = "info"
EXTENSIONS: Final[str] = "extensions"

# summary category -> attribute of the root delta
CATEGORY_FIELDS: Final[dict[str, str]] = {
    PATHS: "paths",
    SECURITY: "security",
    SERVERS: "servers",
    TAGS: "tags",
    SCHEMAS: "schemas",
    PARAMETERS: "parameters",
    HEADERS: "headers",
    REQUEST_BODIES: "request_bodies",
    RESPONSES: "responses",
    SECURITY_SCHEMES: "security_schemes",
    CALLBACKS: "callbacks",
    INFO: "info",
    EXTENSIONS: "extensions",
}


class SummaryDetails(BaseModel):
    """Counts of added, deleted and modified items of one category."""

    added: int = 0
    deleted: int = 0
    modified: int = 0


class Summary(BaseModel):
    """Summarizes the changes between two specifications per category."""

    diff: bool = False
    components: dict[str, SummaryDetails] = Field(default_factory=dict)

    def get_summary_details(self, component: str) -> SummaryDetails:
        return self.components.get(component) or SummaryDetails()

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def get_summary(diff: Any) -> Summary:
    """
    Reads counts off a root delta. Collection-shaped deltas report the sizes
    of their key sets; single-entity deltas (info) count as one modification.
    Categories without changes are omitted.
    """

    summary = Summary(diff=not diff.empty())

    for category, attr in CATEGORY_FIELDS.items():
        delta = getattr(diff, attr, None)
        if delta is None or delta.empty():
            continue

        if hasattr(delta, "summary_counts"):
            added, deleted, modified = delta.summary_counts()
        else:
            added, deleted, modified = 0, 0, 1

        summary.components[category] = SummaryDetails(
            added=added, deleted=deleted, modified=modified
        )

    return summary
