from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from veneer.converter import Converter
from veneer.mapping.mapper import PositionMapper
from veneer.mapping.snapshots import SnapshotCache

if TYPE_CHECKING:
    from veneer.project.registry import ProjectContext


@dataclass
class SessionState:
    """All mutable state of one hosting process, passed explicitly.

    Nothing here is evicted: documents and projects live as long as the
    session does.
    """

    snapshots: SnapshotCache
    mapper: PositionMapper
    contexts: dict[str, ProjectContext] = field(default_factory=dict)

    @classmethod
    def for_converter(cls, converter: Converter) -> SessionState:
        snapshots = SnapshotCache(converter)
        return cls(snapshots=snapshots, mapper=PositionMapper(snapshots))
