"""The virtual file system view an engine sees for one project."""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePath

from veneer.engine.model import ResolvedModule
from veneer.json_types import EngineOptions
from veneer.mapping.snapshots import Snapshot, SnapshotCache

logger = logging.getLogger(__name__)


class ProjectHost:
    """Engine-facing view over declared files, open documents and shims.

    The file set is an ordered set maintained by :meth:`attach` and
    :meth:`detach`; it is not rebuilt per call.
    """

    def __init__(
        self,
        snapshots: SnapshotCache,
        *,
        options: EngineOptions,
        current_directory: str,
        declared_files: tuple[str, ...] = (),
        shim_files: tuple[str, ...] = (),
    ) -> None:
        self._snapshots = snapshots
        self.options = options
        self.current_directory = current_directory
        self._files: dict[str, None] = {}
        for name in (*declared_files, *shim_files):
            self._files[self._engine_name(name)] = None
        self.declared = frozenset(self._files)

    def _engine_name(self, name: str) -> str:
        # Declared source-format files are served through their generated name.
        if self._snapshots.is_source_file(name):
            return self._snapshots.generated_file_name(name)
        return name

    def attach(self, file_name: str) -> None:
        self._files[file_name] = None

    def detach(self, file_name: str) -> None:
        self._files.pop(file_name, None)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._files

    def list_files(self) -> tuple[str, ...]:
        return tuple(self._files)

    def _snapshot(self, file_name: str) -> Snapshot | None:
        snapshot = self._snapshots.get_generated(file_name)
        if snapshot is not None:
            return snapshot
        path = self._snapshots.source_path_for(file_name)
        if path is None:
            return None
        return self._snapshots.load(path)

    def version_of(self, file_name: str) -> str:
        snapshot = self._snapshots.get_generated(file_name)
        return str(snapshot.source_version) if snapshot is not None else "0"

    def snapshot_of(self, file_name: str) -> str | None:
        snapshot = self._snapshot(file_name)
        if snapshot is not None:
            return snapshot.generated_text
        try:
            return Path(file_name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def resolve_module(self, name: str, containing_file: str) -> ResolvedModule | None:
        """Resolve relative imports of source-format files.

        Everything else returns ``None`` and is left to the engine's own
        module resolution.
        """
        if not name.startswith("."):
            return None
        if not self._snapshots.is_source_file(name):
            return None
        containing = self._snapshots.source_path_for(containing_file) or containing_file
        target = os.path.normpath(os.path.join(os.path.dirname(containing), name))
        logger.debug("resolved %s from %s to %s", name, containing_file, target)
        return ResolvedModule(
            resolved_file_name=self._snapshots.generated_file_name(target),
            extension=PurePath(name).suffix,
        )
