"""Result values produced by an analysis engine.

Every offset and span in these types is expressed in the coordinates of the
file the engine was asked about; the translator rewrites them into original
document coordinates with :func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union


@dataclass(frozen=True)
class TextSpan:
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


class DiagnosticCategory(IntEnum):
    WARNING = 0
    ERROR = 1
    SUGGESTION = 2
    MESSAGE = 3


@dataclass(frozen=True)
class MessageChain:
    text: str
    next: tuple[MessageChain, ...] = ()


def flatten_message(message: Union[str, MessageChain], newline: str = "\n") -> str:
    if isinstance(message, str):
        return message
    lines: list[str] = []

    def _walk(chain: MessageChain, depth: int) -> None:
        lines.append("  " * depth + chain.text)
        for child in chain.next:
            _walk(child, depth + 1)

    _walk(message, 0)
    return newline.join(lines)


@dataclass(frozen=True)
class EngineDiagnostic:
    """One engine diagnostic.

    ``start`` is ``None`` for global diagnostics that are not attached to a
    position; such diagnostics are never given a position by translation.
    """

    message: Union[str, MessageChain]
    category: DiagnosticCategory = DiagnosticCategory.ERROR
    code: int | str | None = None
    file_name: str | None = None
    start: int | None = None
    length: int | None = None
    source: str | None = None


@dataclass(frozen=True)
class QuickInfo:
    text_span: TextSpan
    kind: str = ""
    display: str = ""
    documentation: str = ""


@dataclass(frozen=True)
class NavigationTree:
    text: str
    kind: str
    spans: tuple[TextSpan, ...] = ()
    name_span: TextSpan | None = None
    child_items: tuple[NavigationTree, ...] = ()


@dataclass(frozen=True)
class CompletionEntry:
    name: str
    kind: str = ""
    sort_text: str = ""
    insert_text: str | None = None
    replacement_span: TextSpan | None = None


@dataclass(frozen=True)
class CompletionInfo:
    entries: tuple[CompletionEntry, ...] = ()
    is_incomplete: bool = False
    optional_replacement_span: TextSpan | None = None


@dataclass(frozen=True)
class DefinitionInfo:
    file_name: str
    text_span: TextSpan
    name: str = ""
    kind: str = ""


@dataclass(frozen=True)
class TextChange:
    span: TextSpan
    new_text: str


@dataclass(frozen=True)
class FileTextChanges:
    file_name: str
    text_changes: tuple[TextChange, ...] = ()
    is_new_file: bool = False


@dataclass(frozen=True)
class CodeFixAction:
    fix_name: str
    description: str
    changes: tuple[FileTextChanges, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ResolvedModule:
    resolved_file_name: str
    extension: str
