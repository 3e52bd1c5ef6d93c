from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence, runtime_checkable

from veneer.engine.model import (
    CodeFixAction,
    CompletionInfo,
    DefinitionInfo,
    EngineDiagnostic,
    NavigationTree,
    QuickInfo,
    ResolvedModule,
)
from veneer.exceptions import StaleEngineHandle
from veneer.json_types import EngineOptions

logger = logging.getLogger(__name__)


@runtime_checkable
class EngineHost(Protocol):
    """Virtual file system view an engine reads its project through."""

    options: EngineOptions
    current_directory: str

    def list_files(self) -> tuple[str, ...]: ...

    def version_of(self, file_name: str) -> str: ...

    def snapshot_of(self, file_name: str) -> str | None: ...

    def resolve_module(self, name: str, containing_file: str) -> ResolvedModule | None: ...


@runtime_checkable
class AnalysisEngine(Protocol):
    def get_diagnostics(self, file_name: str) -> Sequence[EngineDiagnostic]: ...

    def get_suggestions(self, file_name: str) -> Sequence[EngineDiagnostic]: ...

    def get_semantic_issues(self, file_name: str) -> Sequence[EngineDiagnostic]: ...

    def get_quick_info(self, file_name: str, offset: int) -> QuickInfo | None: ...

    def get_completions(self, file_name: str, offset: int) -> CompletionInfo | None: ...

    def get_navigation_tree(self, file_name: str) -> NavigationTree | None: ...

    def get_definitions(self, file_name: str, offset: int) -> Sequence[DefinitionInfo]: ...

    def get_code_fixes(
        self, file_name: str, start: int, end: int, codes: Sequence[int | str]
    ) -> Sequence[CodeFixAction]: ...

    def dispose(self) -> None: ...


EngineFactory = Callable[[EngineHost], AnalysisEngine]


@dataclass(eq=False)
class EngineHandle:
    """A live engine tagged with the generation that created it.

    Replacing an engine releases the old handle; anyone still holding it gets
    :class:`StaleEngineHandle` instead of talking to a disposed engine.
    """

    generation: int
    inner: AnalysisEngine
    _released: bool = field(default=False, repr=False)

    @property
    def is_stale(self) -> bool:
        return self._released

    @property
    def engine(self) -> AnalysisEngine:
        if self._released:
            raise StaleEngineHandle(self.generation)
        return self.inner

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        logger.debug("disposing engine generation %d", self.generation)
        self.inner.dispose()
