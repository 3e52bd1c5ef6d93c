from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT / "src", ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from veneer.document import Document
from tests.fakes import HeaderConverter, RecordingFactory


@pytest.fixture
def header_converter() -> HeaderConverter:
    return HeaderConverter()


@pytest.fixture
def engine_factory() -> RecordingFactory:
    return RecordingFactory()


@pytest.fixture
def make_document(tmp_path: Path):
    def _make(name: str, text: str, version: int = 0) -> Document:
        return Document(path=str(tmp_path / name), version=version, text=text)

    return _make


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(body: str = "", *, directory: Path | None = None) -> Path:
        target = (directory or tmp_path) / "veneer.toml"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(body, encoding="utf-8")
        return target

    return _write
