"""Offset translation between original documents and generated files."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from veneer.document import Document, LineIndex
from veneer.exceptions import StaleSnapshotError
from veneer.invariants import never
from veneer.mapping.snapshots import Snapshot, SnapshotCache
from veneer.mapping.source_map import ParsedPositionMap, parse_position_map

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapCacheEntry:
    """Parsed map of one document, keyed by version and by the raw artifact.

    Snapshots loaded from disk and opened documents can share a version
    number, so the artifact itself decides whether ``parsed`` still applies.
    """

    source_version: int
    parsed: ParsedPositionMap | None
    position_map: object | None = field(default=None, repr=False)

    def matches(self, snapshot: Snapshot) -> bool:
        return (
            self.source_version == snapshot.source_version
            and self.position_map == snapshot.position_map
        )


@dataclass(frozen=True)
class PendingSnapshot:
    """Ticket returned by :meth:`PositionMapper.request_snapshot`."""

    path: str
    version: int


def _parse_or_none(snapshot: Snapshot) -> ParsedPositionMap | None:
    try:
        return parse_position_map(snapshot.position_map)
    except ValueError as exc:
        logger.warning(
            "ignoring unusable position map for %s v%d: %s",
            snapshot.path,
            snapshot.source_version,
            exc,
        )
        return None


def _translate(
    offset: int,
    *,
    source: LineIndex,
    target: LineIndex,
    lookup,
) -> int:
    # Map artifacts are 1-based in both lines and columns; LineIndex is 0-based.
    line, column = source.position_at(offset)
    found = lookup(line + 1, column + 1)
    if found is None:
        return target.offset_at(line, column)
    target_line, target_column = found
    return target.offset_at(target_line - 1, target_column - 1)


class PositionMapper:
    def __init__(self, snapshots: SnapshotCache) -> None:
        self._snapshots = snapshots
        self._entries: dict[str, MapCacheEntry] = {}

    def cached_entry(self, path: str) -> MapCacheEntry | None:
        return self._entries.get(path)

    def _entry_for(self, snapshot: Snapshot) -> MapCacheEntry:
        entry = self._entries.get(snapshot.path)
        if entry is not None and entry.matches(snapshot):
            return entry
        parsed = _parse_or_none(snapshot) if snapshot.position_map is not None else None
        entry = MapCacheEntry(snapshot.source_version, parsed, snapshot.position_map)
        self._entries[snapshot.path] = entry
        return entry

    def parsed_map(self, snapshot: Snapshot) -> ParsedPositionMap | None:
        if snapshot.position_map is None:
            return None
        return self._entry_for(snapshot).parsed

    def request_snapshot(self, document: Document) -> PendingSnapshot:
        self._snapshots.ensure_current(document)
        return PendingSnapshot(path=document.path, version=document.version)

    async def await_ready(self, pending: PendingSnapshot) -> Snapshot:
        """Finish building the parsed map for a requested document version."""
        snapshot = self._snapshots.get(pending.path)
        if snapshot is None:
            never("snapshot awaited before it was requested", path=pending.path)
        if snapshot.source_version != pending.version:
            raise StaleSnapshotError(pending.path, pending.version, snapshot.source_version)
        entry = self._entries.get(snapshot.path)
        if entry is not None and entry.matches(snapshot):
            return snapshot
        if snapshot.position_map is None:
            parsed = None
        else:
            parsed = await asyncio.to_thread(_parse_or_none, snapshot)
        current = self._snapshots.get(pending.path)
        if current is None or current.source_version != pending.version:
            raise StaleSnapshotError(
                pending.path,
                pending.version,
                current.source_version if current is not None else -1,
            )
        self._entries[snapshot.path] = MapCacheEntry(
            snapshot.source_version, parsed, snapshot.position_map
        )
        return snapshot

    def to_generated(self, document: Document, offset: int) -> int:
        snapshot = self._snapshots.ensure_current(document)
        parsed = self.parsed_map(snapshot)
        if parsed is None:
            return offset
        return _translate(
            offset,
            source=snapshot.original_lines,
            target=snapshot.generated_lines,
            lookup=parsed.generated_position_for,
        )

    def to_original(self, generated_file_name: str, offset: int) -> int:
        snapshot = self._snapshots.get_generated(generated_file_name)
        if snapshot is None:
            return offset
        parsed = self.parsed_map(snapshot)
        if parsed is None:
            return offset
        return _translate(
            offset,
            source=snapshot.generated_lines,
            target=snapshot.original_lines,
            lookup=parsed.original_position_for,
        )

    def to_original_span(
        self, generated_file_name: str, start: int, length: int
    ) -> tuple[int, int]:
        mapped_start = self.to_original(generated_file_name, start)
        mapped_end = self.to_original(generated_file_name, start + length)
        return mapped_start, max(0, mapped_end - mapped_start)
