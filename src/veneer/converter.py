"""Converter contract: original text in, generated representation out."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Protocol, runtime_checkable


class StructuralKind(str, Enum):
    """Shape of a generated representation.

    The engine is configured per kind and cannot switch a file between kinds
    in place, so a change of kind forces an engine restart.
    """

    MARKUP_SCRIPT = "markup+script"
    SCRIPT_ONLY = "script-only"


@dataclass(frozen=True)
class ConversionResult:
    generated_text: str
    position_map: object | None = None
    structural_kind: StructuralKind = StructuralKind.MARKUP_SCRIPT


@runtime_checkable
class Converter(Protocol):
    source_extensions: tuple[str, ...]
    generated_suffix: str
    default_kind: StructuralKind

    def convert(self, text: str, path: str) -> ConversionResult: ...


def generated_file_name(converter: Converter, path: str) -> str:
    return f"{path}{converter.generated_suffix}"


def is_source_path(converter: Converter, path: str) -> bool:
    suffix = PurePath(path).suffix.lower()
    return bool(suffix) and suffix in {ext.lower() for ext in converter.source_extensions}


class PassthroughConverter:
    """Hands the original text to the engine unchanged, without a map."""

    generated_suffix = ""
    default_kind = StructuralKind.SCRIPT_ONLY

    def __init__(self, source_extensions: tuple[str, ...] = ()) -> None:
        self.source_extensions = tuple(source_extensions)

    def convert(self, text: str, path: str) -> ConversionResult:
        return ConversionResult(
            generated_text=text,
            position_map=None,
            structural_kind=StructuralKind.SCRIPT_ONLY,
        )
