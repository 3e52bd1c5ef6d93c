from __future__ import annotations

from pathlib import Path

from veneer.document import Document, LineIndex


def test_position_at_and_offset_at_agree() -> None:
    lines = LineIndex("ab\ncde\n\nf")
    assert lines.line_count == 4
    assert lines.position_at(0) == (0, 0)
    assert lines.position_at(3) == (1, 0)
    assert lines.position_at(6) == (1, 3)
    assert lines.position_at(7) == (2, 0)
    assert lines.position_at(8) == (3, 0)
    for offset in range(10):
        assert lines.offset_at(*lines.position_at(offset)) == offset


def test_out_of_range_positions_are_clamped() -> None:
    lines = LineIndex("ab\ncde")
    assert lines.position_at(-4) == (0, 0)
    assert lines.position_at(99) == (1, 3)
    assert lines.offset_at(0, 40) == 2
    assert lines.offset_at(7, 0) == 6
    assert lines.offset_at(-1, 3) == 0


def test_empty_text() -> None:
    lines = LineIndex("")
    assert lines.position_at(5) == (0, 0)
    assert lines.offset_at(0, 5) == 0


def test_document_uri_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "with space.src"
    document = Document(path=str(path), version=3, text="x")
    restored = Document.from_uri(document.uri, 3, "x")
    assert restored == document
