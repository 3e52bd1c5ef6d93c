"""Per-document cache of generated representations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path, PurePath

from veneer.converter import (
    ConversionResult,
    Converter,
    StructuralKind,
    generated_file_name,
    is_source_path,
)
from veneer.document import Document, LineIndex
from veneer.exceptions import ConversionFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Generated representation of one document version.

    Only valid while ``source_version`` equals the document's version.
    """

    path: str
    generated_file_name: str
    source_version: int
    original_text: str
    generated_text: str
    structural_kind: StructuralKind
    position_map: object | None = None

    @property
    def generated_length(self) -> int:
        return len(self.generated_text)

    def get_text(self, start: int, end: int) -> str:
        return self.generated_text[start:end]

    @cached_property
    def original_lines(self) -> LineIndex:
        return LineIndex(self.original_text)

    @cached_property
    def generated_lines(self) -> LineIndex:
        return LineIndex(self.generated_text)


def _checked_result(result: object, path: str) -> ConversionResult:
    if not isinstance(result, ConversionResult):
        raise ConversionFailure(path, f"converter returned {type(result).__name__}")
    if not isinstance(result.generated_text, str):
        raise ConversionFailure(path, "generated text is not a string")
    try:
        kind = StructuralKind(result.structural_kind)
    except ValueError:
        raise ConversionFailure(
            path, f"unknown structural kind {result.structural_kind!r}"
        ) from None
    if kind is not result.structural_kind:
        result = ConversionResult(result.generated_text, result.position_map, kind)
    return result


class SnapshotCache:
    def __init__(self, converter: Converter) -> None:
        self.converter = converter
        self._by_path: dict[str, Snapshot] = {}
        self._by_generated: dict[str, Snapshot] = {}

    def __len__(self) -> int:
        return len(self._by_path)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def generated_file_name(self, path: str) -> str:
        return generated_file_name(self.converter, path)

    def is_source_file(self, path: str) -> bool:
        return is_source_path(self.converter, path)

    def source_path_for(self, file_name: str) -> str | None:
        """Original path behind a generated file name, tracked or not."""
        snapshot = self._by_generated.get(file_name)
        if snapshot is not None:
            return snapshot.path
        suffix = self.converter.generated_suffix
        if suffix:
            if not file_name.endswith(suffix):
                return None
            file_name = file_name[: -len(suffix)]
        return file_name if self.is_source_file(file_name) else None

    def get(self, path: str) -> Snapshot | None:
        return self._by_path.get(path)

    def get_generated(self, file_name: str) -> Snapshot | None:
        return self._by_generated.get(file_name)

    def _convert(self, document: Document) -> ConversionResult:
        try:
            result = self.converter.convert(document.text, document.path)
        except ConversionFailure:
            raise
        except Exception as exc:
            raise ConversionFailure(document.path, f"{type(exc).__name__}: {exc}") from exc
        return _checked_result(result, document.path)

    def update(self, document: Document) -> Snapshot:
        """Reconvert ``document`` and replace its stored snapshot.

        Conversion always runs, even for an unchanged version. A failing
        conversion is logged and stored as an empty representation without a
        map so downstream engine queries come back empty.
        """
        previous = self._by_path.get(document.path)
        try:
            result = self._convert(document)
        except ConversionFailure as exc:
            logger.warning("%s; serving an empty representation", exc)
            kind = previous.structural_kind if previous else self.converter.default_kind
            result = ConversionResult(generated_text="", position_map=None, structural_kind=kind)
        else:
            logger.debug(
                "converted %s v%d (%s, %d chars)",
                document.path,
                document.version,
                result.structural_kind.value,
                len(result.generated_text),
            )
        snapshot = Snapshot(
            path=document.path,
            generated_file_name=self.generated_file_name(document.path),
            source_version=document.version,
            original_text=document.text,
            generated_text=result.generated_text,
            structural_kind=result.structural_kind,
            position_map=result.position_map,
        )
        if previous is not None and previous.generated_file_name != snapshot.generated_file_name:
            self._by_generated.pop(previous.generated_file_name, None)
        self._by_path[document.path] = snapshot
        self._by_generated[snapshot.generated_file_name] = snapshot
        return snapshot

    def ensure_current(self, document: Document) -> Snapshot:
        snapshot = self._by_path.get(document.path)
        if snapshot is not None and snapshot.source_version == document.version:
            return snapshot
        return self.update(document)

    def load(self, path: str) -> Snapshot | None:
        """Snapshot for a source file the engine references but nobody opened.

        Unreadable files yield ``None`` so the engine sees them as missing.
        """
        snapshot = self._by_path.get(path)
        if snapshot is not None:
            return snapshot
        if not self.is_source_file(path):
            return None
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("cannot read %s from disk: %s", PurePath(path).name, exc)
            return None
        return self.update(Document(path=path, version=0, text=text))
