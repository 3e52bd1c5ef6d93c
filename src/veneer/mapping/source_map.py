"""Position map artifacts and their parsed, queryable form.

Two artifact shapes are accepted:

* a Source Map v3 object (a ``dict`` or its JSON text) whose ``mappings``
  field holds base64 VLQ segments, which is what most converters emit;
* an iterable of :class:`MapEntry` values (or dicts with the same keys),
  convenient for converters that track correspondences directly.

Lines and columns in :class:`MapEntry` and in the query API are 1-based.
VLQ data is 0-based and is shifted while decoding.
"""

from __future__ import annotations

import bisect
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_INDEX = {char: index for index, char in enumerate(_BASE64_ALPHABET)}
_VLQ_CONTINUATION = 0b100000
_VLQ_DIGIT_MASK = 0b011111

_ENTRY_KEYS = ("generated_line", "generated_column", "original_line", "original_column")


@dataclass(frozen=True)
class MapEntry:
    """One correspondence; without an original position it marks generated-only code."""

    generated_line: int
    generated_column: int
    original_line: int | None = None
    original_column: int | None = None

    @property
    def is_generated_only(self) -> bool:
        return self.original_line is None or self.original_column is None


def decode_vlq(segment: str) -> list[int]:
    values: list[int] = []
    value = 0
    shift = 0
    for char in segment:
        try:
            digit = _BASE64_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base64 VLQ character {char!r}") from None
        value += (digit & _VLQ_DIGIT_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += 5
            continue
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value = 0
        shift = 0
    if shift:
        raise ValueError(f"truncated VLQ segment {segment!r}")
    return values


def decode_mappings(mappings: str) -> list[MapEntry]:
    entries: list[MapEntry] = []
    source_index = 0
    original_line = 0
    original_column = 0
    for line_number, line in enumerate(mappings.split(";")):
        generated_column = 0
        for segment in line.split(","):
            if not segment:
                continue
            fields = decode_vlq(segment)
            if len(fields) not in (1, 4, 5):
                raise ValueError(f"segment {segment!r} has {len(fields)} fields")
            generated_column += fields[0]
            if len(fields) == 1:
                if generated_column < 0:
                    raise ValueError(f"segment {segment!r} decodes to a negative position")
                # Synthetic code up to the next segment has no source.
                entries.append(MapEntry(line_number + 1, generated_column + 1))
                continue
            source_index += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            if generated_column < 0 or original_line < 0 or original_column < 0:
                raise ValueError(f"segment {segment!r} decodes to a negative position")
            entries.append(
                MapEntry(
                    generated_line=line_number + 1,
                    generated_column=generated_column + 1,
                    original_line=original_line + 1,
                    original_column=original_column + 1,
                )
            )
    return entries


class _LineTable:
    __slots__ = ("columns", "entries")

    def __init__(self) -> None:
        self.columns: list[int] = []
        self.entries: list[MapEntry] = []


def _build_index(entries: list[MapEntry], *, generated: bool) -> dict[int, _LineTable]:
    tables: dict[int, _LineTable] = {}
    for entry in entries:
        if generated:
            line, column = entry.generated_line, entry.generated_column
        elif entry.is_generated_only:
            continue
        else:
            line, column = entry.original_line, entry.original_column
        table = tables.setdefault(line, _LineTable())
        index = bisect.bisect_left(table.columns, column)
        if index < len(table.columns) and table.columns[index] == column:
            # First entry in generated order wins; a mapped entry replaces a
            # generated-only marker at the same column.
            if table.entries[index].is_generated_only and not entry.is_generated_only:
                table.entries[index] = entry
            continue
        table.columns.insert(index, column)
        table.entries.insert(index, entry)
    return tables


def _nearest(table: _LineTable | None, column: int) -> MapEntry | None:
    if table is None:
        return None
    index = bisect.bisect_right(table.columns, column) - 1
    if index < 0:
        return None
    return table.entries[index]


class ParsedPositionMap:
    """Queryable correspondence between generated and original positions.

    A lookup finds the nearest entry on the same line at or before the
    queried column and carries the column distance across, so text inside a
    one-to-one segment maps exactly in both directions. Columns covered by a
    generated-only entry have no original position.
    """

    def __init__(self, entries: Iterable[MapEntry]) -> None:
        ordered = sorted(entries, key=lambda e: (e.generated_line, e.generated_column))
        self._entries = tuple(ordered)
        self._by_generated = _build_index(ordered, generated=True)
        self._by_original = _build_index(ordered, generated=False)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[MapEntry, ...]:
        return self._entries

    def original_position_for(self, line: int, column: int) -> tuple[int, int] | None:
        entry = _nearest(self._by_generated.get(line), column)
        if entry is None or entry.is_generated_only:
            return None
        return entry.original_line, entry.original_column + (column - entry.generated_column)

    def generated_position_for(self, line: int, column: int) -> tuple[int, int] | None:
        entry = _nearest(self._by_original.get(line), column)
        if entry is None:
            return None
        return entry.generated_line, entry.generated_column + (column - entry.original_column)


def _coerce_entry(item: object) -> MapEntry:
    if isinstance(item, MapEntry):
        return item
    if isinstance(item, Mapping):
        try:
            values = [int(item[key]) for key in _ENTRY_KEYS]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid map entry {item!r}") from exc
        if min(values) < 1:
            raise ValueError(f"map entry {item!r} is not 1-based")
        return MapEntry(*values)
    raise ValueError(f"unsupported map entry type {type(item).__name__}")


def parse_position_map(raw: object) -> ParsedPositionMap:
    if isinstance(raw, ParsedPositionMap):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"position map is not valid JSON: {exc}") from exc
    if isinstance(raw, Mapping):
        mappings = raw.get("mappings")
        if not isinstance(mappings, str):
            raise ValueError("source map has no 'mappings' string")
        entries = decode_mappings(mappings)
        logger.debug("decoded %d source map segments", len(entries))
        return ParsedPositionMap(entries)
    if isinstance(raw, Iterable):
        return ParsedPositionMap(_coerce_entry(item) for item in raw)
    raise ValueError(f"unsupported position map type {type(raw).__name__}")
