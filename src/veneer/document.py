from __future__ import annotations

import bisect
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse


def _uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme and parsed.scheme != "file":
        return uri
    return unquote(parsed.path) if parsed.scheme else uri


@dataclass(frozen=True)
class Document:
    """A caller-owned source document.

    ``version`` increases monotonically with every edit; the mapping layer
    never mutates documents, it only derives snapshots from them.
    """

    path: str
    version: int
    text: str

    @property
    def uri(self) -> str:
        return Path(self.path).absolute().as_uri()

    @classmethod
    def from_uri(cls, uri: str, version: int, text: str) -> Document:
        return cls(path=_uri_to_path(uri), version=version, text=text)


class LineIndex:
    """0-based offset <-> 0-based (line, column) conversion for one text.

    Out of range inputs are clamped rather than rejected: a column past the
    end of its line lands on the line end and a line past the last line lands
    on the end of the text.
    """

    def __init__(self, text: str) -> None:
        self._length = len(text)
        starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                starts.append(index + 1)
        self._line_starts = starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_end(self, line: int) -> int:
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1
        return self._length

    def position_at(self, offset: int) -> tuple[int, int]:
        offset = min(max(offset, 0), self._length)
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return line, offset - self._line_starts[line]

    def offset_at(self, line: int, column: int) -> int:
        if line < 0:
            return 0
        if line >= len(self._line_starts):
            return self._length
        start = self._line_starts[line]
        return min(start + max(column, 0), self.line_end(line))
