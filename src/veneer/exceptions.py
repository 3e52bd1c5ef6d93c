"""Exception types for the Veneer mapping layer."""

from __future__ import annotations


class VeneerError(RuntimeError):
    """Base class for recoverable failures inside the mapping layer."""


class ConversionFailure(VeneerError):
    """The converter raised or produced output the cache cannot use."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"could not convert {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigParseFailure(VeneerError):
    def __init__(self, config_path: str, reason: str) -> None:
        super().__init__(f"could not parse {config_path}: {reason}")
        self.config_path = config_path
        self.reason = reason


class EngineQueryFailure(VeneerError):
    """An engine query raised; callers see an empty or absent result."""

    def __init__(self, operation: str, file_name: str) -> None:
        super().__init__(f"engine query {operation} failed for {file_name}")
        self.operation = operation
        self.file_name = file_name


class StaleEngineHandle(VeneerError):
    def __init__(self, generation: int) -> None:
        super().__init__(f"engine handle generation {generation} was released")
        self.generation = generation


class StaleSnapshotError(VeneerError):
    def __init__(self, path: str, requested: int, current: int) -> None:
        super().__init__(
            f"snapshot for {path} moved from version {requested} to {current}"
        )
        self.path = path
        self.requested = requested
        self.current = current


class NeverRaise(RuntimeError):
    """Sentinel exception for code paths that should be unreachable.

    Reaching one means a caller broke the protocol of the layer (for example
    awaiting a snapshot that was never requested), not that a document or
    project is degraded.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
