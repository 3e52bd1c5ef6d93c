from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from veneer.converter import Converter, PassthroughConverter
from veneer.document import Document, LineIndex
from veneer.engine.model import DiagnosticCategory, flatten_message
from veneer.invariants import never
from veneer.mapping.snapshots import SnapshotCache
from veneer.plugins import instantiate
from veneer.project.config import DEFAULT_CONFIG_NAME
from veneer.schema import DiagnosticsSettings, ServerSettings
from veneer.service import build_bridge

app = typer.Typer(add_completion=False)

_CONVERTER_HELP = "Converter as 'module:attribute' (class, factory or instance)."
_ENGINE_HELP = "Engine factory as 'module:attribute', called with each project host."


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.getLevelName(level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_converter(reference: Optional[str]) -> Converter:
    if not reference:
        return PassthroughConverter()
    converter = instantiate(reference)
    if not isinstance(converter, Converter):
        never("converter does not implement the converter protocol", reference=reference)
    return converter


@app.command("serve")
def serve(
    converter: Optional[str] = typer.Option(None, "--converter", help=_CONVERTER_HELP),
    engine: Optional[str] = typer.Option(None, "--engine", help=_ENGINE_HELP),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Run the language server over stdio.

    Initialization options sent by the client override these defaults.
    """
    _configure_logging(log_level)
    from veneer.server import start, server

    server.defaults = ServerSettings(converter=converter, engine=engine, log_level=log_level)
    start()


@app.command("check")
def check(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False),
    converter: Optional[str] = typer.Option(None, "--converter", help=_CONVERTER_HELP),
    engine: str = typer.Option(..., "--engine", help=_ENGINE_HELP),
    semantic: bool = typer.Option(True, "--semantic/--no-semantic"),
    config_names: Optional[List[str]] = typer.Option(None, "--config-name"),
    shim_files: Optional[List[str]] = typer.Option(None, "--shim"),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Print translated diagnostics as path:line:col: severity: message."""
    _configure_logging(log_level)
    settings = ServerSettings(
        converter=converter,
        engine=engine,
        diagnostics=DiagnosticsSettings(semantic=semantic),
        config_names=list(config_names or [DEFAULT_CONFIG_NAME]),
        shim_files=list(shim_files or []),
    )
    bridge = build_bridge(settings)
    errors = 0
    for path in paths:
        text = path.read_text(encoding="utf-8")
        document = Document(path=str(path.absolute()), version=0, text=text)
        lines = LineIndex(text)
        for diagnostic in bridge.diagnostics(document, semantic=semantic):
            line, column = lines.position_at(diagnostic.start or 0)
            severity = diagnostic.category.name.lower()
            message = flatten_message(diagnostic.message, " ")
            typer.echo(f"{path}:{line + 1}:{column + 1}: {severity}: {message}")
            if diagnostic.category is DiagnosticCategory.ERROR:
                errors += 1
    raise typer.Exit(code=1 if errors else 0)


@app.command("convert")
def convert(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    converter: Optional[str] = typer.Option(None, "--converter", help=_CONVERTER_HELP),
) -> None:
    """Print the generated representation of one file."""
    snapshots = SnapshotCache(_load_converter(converter))
    snapshot = snapshots.update(
        Document(path=str(path.absolute()), version=0, text=path.read_text(encoding="utf-8"))
    )
    typer.echo(snapshot.generated_text, nl=False)
    typer.echo(
        f"# {snapshot.generated_file_name}: {snapshot.structural_kind.value}, "
        f"{snapshot.generated_length} chars, "
        f"{'with' if snapshot.position_map is not None else 'without'} position map",
        err=True,
    )


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
