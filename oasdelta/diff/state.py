from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Optional

from oasdelta.config import DiffConfig
from oasdelta.spec.models import SecurityRequirement


class _InProgress:
    def __repr__(self) -> str:
        return "<in progress>"


IN_PROGRESS: Final[Any] = _InProgress()


class SchemaDiffCache:
    """
    Memo of schema comparisons keyed by the identity of the two nodes.

    A pair that is still being computed maps to IN_PROGRESS; meeting it again
    means the graphs loop back on themselves, and the caller treats it as
    "no change" to cut the cycle.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[int, int], Any] = {}
        # keeps compared nodes alive so their ids cannot be reused
        self._pins: list[Any] = []
        self.hits = 0

    @staticmethod
    def key(schema1: Any, schema2: Any) -> tuple[int, int]:
        return (id(schema1), id(schema2))

    def __contains__(self, pair: tuple[Any, Any]) -> bool:
        return self.key(*pair) in self._entries

    def get(self, schema1: Any, schema2: Any) -> Any:
        self.hits += 1
        return self._entries[self.key(schema1, schema2)]

    def start(self, schema1: Any, schema2: Any) -> None:
        self._pins.append((schema1, schema2))
        self._entries[self.key(schema1, schema2)] = IN_PROGRESS

    def finish(self, schema1: Any, schema2: Any, result: Any) -> None:
        self._entries[self.key(schema1, schema2)] = result

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class DiffState:
    """Everything one diff invocation owns. Never shared between calls."""

    config: DiffConfig
    schema_cache: SchemaDiffCache = field(default_factory=SchemaDiffCache)
    # document-level requirements that operations without their own inherit
    base_security: Optional[list[SecurityRequirement]] = None
    revision_security: Optional[list[SecurityRequirement]] = None
