from __future__ import annotations

import logging
from typing import Callable, Sequence

from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    Diagnostic,
    DiagnosticSeverity,
    InitializeParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pydantic import ValidationError
from pygls.lsp.server import LanguageServer

from veneer import __version__
from veneer.document import Document, LineIndex
from veneer.engine.model import DiagnosticCategory, EngineDiagnostic, flatten_message
from veneer.exceptions import NeverThrown
from veneer.schema import ServerSettings
from veneer.service import LanguageServiceBridge, build_bridge

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "veneer"

_SEVERITY = {
    DiagnosticCategory.ERROR: DiagnosticSeverity.Error,
    DiagnosticCategory.WARNING: DiagnosticSeverity.Warning,
    DiagnosticCategory.SUGGESTION: DiagnosticSeverity.Hint,
    DiagnosticCategory.MESSAGE: DiagnosticSeverity.Information,
}


class VeneerLanguageServer(LanguageServer):
    """Language server owning one bridge for the lifetime of the process."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.defaults = ServerSettings()
        self.settings = ServerSettings()
        self.bridge: LanguageServiceBridge | None = None

    def configure(self, options: object) -> None:
        payload = self.defaults.model_dump(by_alias=True, exclude_none=True)
        if isinstance(options, dict):
            payload.update({key: value for key, value in options.items() if value is not None})
        try:
            settings = ServerSettings.model_validate(payload)
        except ValidationError as exc:
            logger.warning("invalid initialization options, using defaults: %s", exc)
            settings = self.defaults
        self.settings = settings
        apply_log_level(settings.log_level)
        if not settings.engine:
            logger.warning("no engine factory configured; diagnostics are disabled")
            self.bridge = None
            return
        try:
            self.bridge = build_bridge(settings)
        except (ImportError, NeverThrown) as exc:
            logger.error("could not set up the analysis bridge: %s", exc)
            self.bridge = None


def apply_log_level(level: str | None) -> None:
    if not level:
        return
    resolved = logging.getLevelName(level.upper())
    if isinstance(resolved, int):
        logging.getLogger("veneer").setLevel(resolved)


def to_lsp_diagnostics(
    document: Document, diagnostics: Sequence[EngineDiagnostic]
) -> list[Diagnostic]:
    lines = LineIndex(document.text)
    converted: list[Diagnostic] = []
    for diagnostic in diagnostics:
        start = diagnostic.start if diagnostic.start is not None else 0
        end = start + (diagnostic.length or 0)
        start_line, start_col = lines.position_at(start)
        end_line, end_col = lines.position_at(end)
        converted.append(
            Diagnostic(
                range=Range(
                    start=Position(line=start_line, character=start_col),
                    end=Position(line=end_line, character=end_col),
                ),
                message=flatten_message(diagnostic.message),
                severity=_SEVERITY.get(diagnostic.category, DiagnosticSeverity.Error),
                code=diagnostic.code,
                source=diagnostic.source or DIAGNOSTIC_SOURCE,
            )
        )
    return converted


server = VeneerLanguageServer(
    "veneer",
    __version__,
    text_document_sync_kind=TextDocumentSyncKind.Full,
)


def _document_for(ls: VeneerLanguageServer, uri: str) -> Document:
    text_document = ls.workspace.get_text_document(uri)
    return Document.from_uri(uri, text_document.version or 0, text_document.source)


def publish_diagnostics(ls: VeneerLanguageServer, uri: str) -> None:
    if ls.bridge is None or not ls.settings.diagnostics.enable:
        return
    document = _document_for(ls, uri)
    found = ls.bridge.diagnostics(document, semantic=ls.settings.diagnostics.semantic)
    logger.debug("publishing %d diagnostics for %s", len(found), uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(
            uri=uri,
            diagnostics=to_lsp_diagnostics(document, found),
            version=document.version,
        )
    )


@server.feature(INITIALIZE)
def initialize(ls: VeneerLanguageServer, params: InitializeParams) -> None:
    ls.configure(params.initialization_options)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: VeneerLanguageServer, params) -> None:
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: VeneerLanguageServer, params) -> None:
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
def did_save(ls: VeneerLanguageServer, params) -> None:
    publish_diagnostics(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: VeneerLanguageServer, params) -> None:
    uri = params.text_document.uri
    if ls.bridge is not None:
        ls.bridge.close_document(Document.from_uri(uri, 0, ""))
    ls.text_document_publish_diagnostics(PublishDiagnosticsParams(uri=uri, diagnostics=[]))


def start(start_fn: Callable[[], None] | None = None) -> None:
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
