"""Rewrites engine results from generated into original coordinates."""

from __future__ import annotations

from dataclasses import replace
from functools import singledispatchmethod

from veneer.engine.model import (
    CodeFixAction,
    CompletionEntry,
    CompletionInfo,
    DefinitionInfo,
    EngineDiagnostic,
    FileTextChanges,
    NavigationTree,
    QuickInfo,
    TextChange,
    TextSpan,
)
from veneer.mapping.mapper import PositionMapper
from veneer.mapping.snapshots import SnapshotCache


class ResultTranslator:
    """Structure-preserving rewrite of every position in an engine result.

    Positions in files without a tracked snapshot are left as they are: only
    files with an original representation have coordinates to map into.
    """

    def __init__(self, mapper: PositionMapper, snapshots: SnapshotCache) -> None:
        self._mapper = mapper
        self._snapshots = snapshots

    def _tracked(self, file_name: str) -> bool:
        return self._snapshots.get_generated(file_name) is not None

    def _clamp(self, file_name: str, offset: int) -> int:
        snapshot = self._snapshots.get_generated(file_name)
        if snapshot is None:
            return offset
        return min(max(offset, 0), len(snapshot.original_text))

    def offset(self, file_name: str, offset: int) -> int:
        if not self._tracked(file_name):
            return offset
        return self._clamp(file_name, self._mapper.to_original(file_name, offset))

    def span(self, file_name: str, span: TextSpan | None) -> TextSpan | None:
        if span is None or not self._tracked(file_name):
            return span
        start = self.offset(file_name, span.start)
        end = self.offset(file_name, span.end)
        return TextSpan(start=start, length=max(0, end - start))

    @singledispatchmethod
    def translate(self, result: object, file_name: str) -> object:
        return result

    @translate.register(type(None))
    def _(self, result: None, file_name: str) -> None:
        return None

    @translate.register
    def _(self, result: list, file_name: str) -> list:
        return [self.translate(item, file_name) for item in result]

    @translate.register
    def _(self, result: tuple, file_name: str) -> tuple:
        return tuple(self.translate(item, file_name) for item in result)

    @translate.register
    def _(self, result: EngineDiagnostic, file_name: str) -> EngineDiagnostic:
        if result.start is None:
            return result
        target = result.file_name or file_name
        if not self._tracked(target):
            return result
        if result.length is None:
            return replace(result, start=self.offset(target, result.start))
        span = self.span(target, TextSpan(result.start, result.length))
        return replace(result, start=span.start, length=span.length)

    @translate.register
    def _(self, result: QuickInfo, file_name: str) -> QuickInfo:
        return replace(result, text_span=self.span(file_name, result.text_span))

    @translate.register
    def _(self, result: NavigationTree, file_name: str) -> NavigationTree:
        return replace(
            result,
            spans=tuple(self.span(file_name, span) for span in result.spans),
            name_span=self.span(file_name, result.name_span),
            child_items=tuple(self.translate(child, file_name) for child in result.child_items),
        )

    @translate.register
    def _(self, result: CompletionEntry, file_name: str) -> CompletionEntry:
        return replace(result, replacement_span=self.span(file_name, result.replacement_span))

    @translate.register
    def _(self, result: CompletionInfo, file_name: str) -> CompletionInfo:
        return replace(
            result,
            entries=tuple(self.translate(entry, file_name) for entry in result.entries),
            optional_replacement_span=self.span(file_name, result.optional_replacement_span),
        )

    @translate.register
    def _(self, result: DefinitionInfo, file_name: str) -> DefinitionInfo:
        return replace(result, text_span=self.span(result.file_name, result.text_span))

    @translate.register
    def _(self, result: FileTextChanges, file_name: str) -> FileTextChanges:
        # Code fixes may touch files other than the one queried.
        target = result.file_name
        return replace(
            result,
            text_changes=tuple(
                TextChange(span=self.span(target, change.span), new_text=change.new_text)
                for change in result.text_changes
            ),
        )

    @translate.register
    def _(self, result: CodeFixAction, file_name: str) -> CodeFixAction:
        return replace(
            result,
            changes=tuple(self.translate(change, file_name) for change in result.changes),
        )
