"""One engine per project configuration, restarted on incompatible changes."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import PurePath
from types import MappingProxyType

from veneer.converter import StructuralKind
from veneer.document import Document
from veneer.engine.contract import AnalysisEngine, EngineFactory, EngineHandle
from veneer.exceptions import ConfigParseFailure
from veneer.invariants import never
from veneer.json_types import EngineOptions
from veneer.mapping.snapshots import Snapshot
from veneer.project.config import (
    DEFAULT_OPTIONS,
    ConfigLoader,
    TomlConfigLoader,
    merge_options,
)
from veneer.project.host import ProjectHost
from veneer.session import SessionState

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ProjectContext:
    """Engine, options and attached documents of one configuration path.

    ``config_path`` is ``""`` for documents outside any configured project.
    ``documents`` is keyed by generated file name, ``kinds`` by original path
    and records the structural kind each document had when last attached.
    """

    config_path: str
    options: EngineOptions
    file_names: tuple[str, ...]
    host: ProjectHost
    documents: dict[str, Snapshot] = field(default_factory=dict)
    kinds: dict[str, StructuralKind] = field(default_factory=dict)
    handle: EngineHandle | None = None
    generation: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @contextmanager
    def engine_scope(self) -> Iterator[AnalysisEngine]:
        """Hold the context exclusively while talking to its engine."""
        with self.lock:
            if self.handle is None:
                never("engine queried before any document was attached", config=self.config_path)
            yield self.handle.engine


class EngineRegistry:
    def __init__(
        self,
        state: SessionState,
        engine_factory: EngineFactory,
        *,
        config_loader: ConfigLoader | None = None,
        shim_files: tuple[str, ...] = (),
    ) -> None:
        self._state = state
        self._engine_factory = engine_factory
        self._loader = config_loader if config_loader is not None else TomlConfigLoader()
        self._shim_files = tuple(shim_files)
        self._lock = threading.Lock()

    @property
    def contexts(self) -> Mapping[str, ProjectContext]:
        return MappingProxyType(self._state.contexts)

    def project_identity(self, document: Document) -> str:
        search_dir = str(PurePath(document.path).parent)
        return self._loader.find_config(search_dir) or ""

    def _create_context(self, config_path: str) -> ProjectContext:
        user_options: EngineOptions = {}
        file_names: tuple[str, ...] = ()
        if config_path:
            try:
                project = self._loader.parse_config(config_path)
            except (ConfigParseFailure, OSError, ValueError) as exc:
                logger.warning("%s; falling back to default engine options", exc)
            else:
                user_options = dict(project.options)
                file_names = tuple(project.file_names)
        options = merge_options(DEFAULT_OPTIONS, user_options)
        workspace = os.path.dirname(config_path) if config_path else ""
        host = ProjectHost(
            self._state.snapshots,
            options=options,
            current_directory=workspace,
            declared_files=file_names,
            shim_files=self._shim_files,
        )
        logger.info(
            "created project context %r (%d declared files)",
            config_path or "<default>",
            len(file_names),
        )
        return ProjectContext(
            config_path=config_path,
            options=options,
            file_names=file_names,
            host=host,
        )

    def context_for(self, document: Document) -> ProjectContext:
        identity = self.project_identity(document)
        with self._lock:
            context = self._state.contexts.get(identity)
            if context is None:
                context = self._create_context(identity)
                self._state.contexts[identity] = context
        return context

    def _start_engine(self, context: ProjectContext) -> EngineHandle:
        context.generation += 1
        context.handle = EngineHandle(
            generation=context.generation,
            inner=self._engine_factory(context.host),
        )
        return context.handle

    def _restart_engine(self, context: ProjectContext) -> EngineHandle:
        if context.handle is not None:
            context.handle.release()
        return self._start_engine(context)

    def get_engine(self, document: Document) -> EngineHandle:
        """Attach ``document`` to its project and return the project's engine.

        The snapshot is refreshed on every call. The engine is created on the
        first attach and replaced when the document's structural kind differs
        from the kind it was last seen with, either at a previous attach or
        when the engine loaded it from disk, since the engine cannot switch a
        file's kind in place.
        """
        context = self.context_for(document)
        with context.lock:
            previous_kind = context.kinds.get(document.path)
            if previous_kind is None:
                # Files the engine loaded from disk were compiled with their
                # cached kind even though nobody attached them.
                cached = self._state.snapshots.get(document.path)
                previous_kind = cached.structural_kind if cached is not None else None
            snapshot = self._state.snapshots.update(document)
            context.documents[snapshot.generated_file_name] = snapshot
            context.kinds[document.path] = snapshot.structural_kind
            context.host.attach(snapshot.generated_file_name)
            if context.handle is None:
                return self._start_engine(context)
            if previous_kind is not None and previous_kind is not snapshot.structural_kind:
                logger.info(
                    "%s changed from %s to %s; restarting engine for %r",
                    document.path,
                    previous_kind.value,
                    snapshot.structural_kind.value,
                    context.config_path or "<default>",
                )
                return self._restart_engine(context)
            return context.handle

    def detach(self, document: Document) -> None:
        """Drop a closed document from its project's file list.

        Its snapshot and recorded kind stay so imports from other documents
        still resolve and a reopen with another kind still restarts the
        engine.
        """
        context = self._state.contexts.get(self.project_identity(document))
        if context is None:
            return
        with context.lock:
            file_name = self._state.snapshots.generated_file_name(document.path)
            context.documents.pop(file_name, None)
            if file_name not in context.host.declared:
                context.host.detach(file_name)
