from veneer.mapping.mapper import MapCacheEntry, PendingSnapshot, PositionMapper
from veneer.mapping.snapshots import Snapshot, SnapshotCache
from veneer.mapping.source_map import MapEntry, ParsedPositionMap, parse_position_map
from veneer.mapping.translator import ResultTranslator

__all__ = [
    "MapCacheEntry",
    "MapEntry",
    "ParsedPositionMap",
    "PendingSnapshot",
    "PositionMapper",
    "ResultTranslator",
    "Snapshot",
    "SnapshotCache",
    "parse_position_map",
]
