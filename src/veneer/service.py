"""The two calls every feature-level consumer issues per request.

``update_document`` attaches a document to its project and hands back the
project's engine; ``translate`` rewrites whatever that engine answered into
the document's own coordinates. The query helpers below combine both and
apply the failure policy: an engine that raises yields an empty list or
``None``, never an exception, and is not retried.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence, TypeVar

from veneer.converter import Converter, PassthroughConverter
from veneer.document import Document
from veneer.engine.contract import AnalysisEngine, EngineFactory, EngineHandle
from veneer.engine.model import (
    CodeFixAction,
    CompletionInfo,
    DefinitionInfo,
    EngineDiagnostic,
    NavigationTree,
    QuickInfo,
)
from veneer.exceptions import EngineQueryFailure
from veneer.invariants import never
from veneer.mapping.snapshots import Snapshot
from veneer.mapping.translator import ResultTranslator
from veneer.plugins import instantiate, load_object
from veneer.project.config import ConfigLoader, TomlConfigLoader
from veneer.project.registry import EngineRegistry
from veneer.schema import ServerSettings
from veneer.session import SessionState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LanguageServiceBridge:
    def __init__(
        self,
        converter: Converter,
        engine_factory: EngineFactory,
        *,
        config_loader: ConfigLoader | None = None,
        shim_files: Sequence[str] = (),
        state: SessionState | None = None,
    ) -> None:
        self.state = state if state is not None else SessionState.for_converter(converter)
        self.registry = EngineRegistry(
            self.state,
            engine_factory,
            config_loader=config_loader,
            shim_files=tuple(shim_files),
        )
        self.translator = ResultTranslator(self.state.mapper, self.state.snapshots)

    def update_document(self, document: Document) -> EngineHandle:
        return self.registry.get_engine(document)

    def close_document(self, document: Document) -> None:
        self.registry.detach(document)

    def generated_file_name(self, document: Document) -> str:
        return self.state.snapshots.generated_file_name(document.path)

    def translate(self, result: T, document: Document) -> T:
        return self.translator.translate(result, self.generated_file_name(document))

    async def prepare(self, document: Document) -> Snapshot:
        """Attach ``document`` and finish parsing its map before translating."""
        self.update_document(document)
        pending = self.state.mapper.request_snapshot(document)
        return await self.state.mapper.await_ready(pending)

    def _to_generated(self, document: Document, offset: int) -> int:
        return self.state.mapper.to_generated(document, offset)

    def _query(
        self,
        document: Document,
        operation: str,
        call: Callable[[AnalysisEngine, str], T],
        default: T,
    ) -> T:
        self.update_document(document)
        context = self.registry.context_for(document)
        file_name = self.generated_file_name(document)
        with context.engine_scope() as engine:
            try:
                result = call(engine, file_name)
            except Exception:
                failure = EngineQueryFailure(operation, file_name)
                logger.warning("%s", failure, exc_info=True)
                return default
        return self.translate(result if result is not None else default, document)

    def diagnostics(self, document: Document, *, semantic: bool = True) -> list[EngineDiagnostic]:
        def _collect(engine: AnalysisEngine, file_name: str) -> list[EngineDiagnostic]:
            found = [*engine.get_diagnostics(file_name), *engine.get_suggestions(file_name)]
            if semantic:
                found.extend(engine.get_semantic_issues(file_name))
            return found

        return self._query(document, "diagnostics", _collect, [])

    def quick_info(self, document: Document, offset: int) -> QuickInfo | None:
        return self._query(
            document,
            "quick_info",
            lambda engine, name: engine.get_quick_info(name, self._to_generated(document, offset)),
            None,
        )

    def completions(self, document: Document, offset: int) -> CompletionInfo | None:
        return self._query(
            document,
            "completions",
            lambda engine, name: engine.get_completions(name, self._to_generated(document, offset)),
            None,
        )

    def navigation_tree(self, document: Document) -> NavigationTree | None:
        return self._query(
            document,
            "navigation_tree",
            lambda engine, name: engine.get_navigation_tree(name),
            None,
        )

    def definitions(self, document: Document, offset: int) -> list[DefinitionInfo]:
        return self._query(
            document,
            "definitions",
            lambda engine, name: list(engine.get_definitions(name, self._to_generated(document, offset))),
            [],
        )

    def code_fixes(
        self,
        document: Document,
        start: int,
        end: int,
        codes: Sequence[int | str],
    ) -> list[CodeFixAction]:
        return self._query(
            document,
            "code_fixes",
            lambda engine, name: list(
                engine.get_code_fixes(
                    name,
                    self._to_generated(document, start),
                    self._to_generated(document, end),
                    list(codes),
                )
            ),
            [],
        )


def build_bridge(settings: ServerSettings) -> LanguageServiceBridge:
    """Assemble a bridge from import references in ``settings``."""
    if settings.converter:
        converter = instantiate(settings.converter)
    else:
        converter = PassthroughConverter()
    if not isinstance(converter, Converter):
        never("converter does not implement the converter protocol", reference=settings.converter)
    if not settings.engine:
        never("no engine factory configured")
    engine_factory = load_object(settings.engine)
    if not callable(engine_factory):
        never("engine factory is not callable", reference=settings.engine)
    return LanguageServiceBridge(
        converter,
        engine_factory,
        config_loader=TomlConfigLoader(tuple(settings.config_names)),
        shim_files=settings.shim_files,
    )
