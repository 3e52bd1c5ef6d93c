from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from veneer.converter import StructuralKind
from veneer.document import Document
from veneer.exceptions import StaleEngineHandle
from veneer.project.config import DEFAULT_OPTIONS, FORCED_OPTIONS
from veneer.project.registry import EngineRegistry
from veneer.session import SessionState
from tests.fakes import HeaderConverter, RecordingFactory


def _registry(converter, factory, **kwargs) -> EngineRegistry:
    return EngineRegistry(SessionState.for_converter(converter), factory, **kwargs)


def test_documents_of_one_project_share_an_engine(
    header_converter, engine_factory, make_document, write_config
) -> None:
    config = write_config()
    registry = _registry(header_converter, engine_factory)
    first = registry.get_engine(make_document("a.src", "ok"))
    second = registry.get_engine(make_document("b.src", "bad"))
    assert first is second
    assert list(registry.contexts) == [str(config)]
    assert len(engine_factory.engines) == 1


def test_projects_are_keyed_by_config_path(
    tmp_path: Path, header_converter, engine_factory, write_config
) -> None:
    left = write_config(directory=tmp_path / "left")
    right = write_config(directory=tmp_path / "right")
    registry = _registry(header_converter, engine_factory)
    a = registry.get_engine(Document(str(tmp_path / "left" / "a.src"), 0, "ok"))
    b = registry.get_engine(Document(str(tmp_path / "right" / "b.src"), 0, "ok"))
    assert a is not b
    assert set(registry.contexts) == {str(left), str(right)}


def test_documents_without_config_share_the_default_context(
    header_converter, engine_factory, make_document
) -> None:
    registry = _registry(header_converter, engine_factory)
    document = make_document("a.src", "ok")
    handle = registry.get_engine(document)
    assert registry.project_identity(document) == ""
    assert registry.contexts[""].handle is handle
    assert registry.contexts[""].options == {**DEFAULT_OPTIONS, **FORCED_OPTIONS}


def test_repeated_calls_are_idempotent(header_converter, engine_factory, make_document) -> None:
    registry = _registry(header_converter, engine_factory)
    document = make_document("a.src", "ok")
    first = registry.get_engine(document)
    second = registry.get_engine(document)
    assert first is second
    assert len(engine_factory.engines) == 1
    assert registry.contexts[""].generation == 1


def test_kind_change_restarts_the_engine(engine_factory, make_document) -> None:
    converter = HeaderConverter(kind=StructuralKind.SCRIPT_ONLY)
    registry = _registry(converter, engine_factory)
    old = registry.get_engine(make_document("a.src", "ok", version=1))

    converter.kind = StructuralKind.MARKUP_SCRIPT
    new = registry.get_engine(make_document("a.src", "<p>ok</p>", version=2))

    assert new is not old
    assert old.is_stale
    assert engine_factory.engines[0].disposed
    assert not engine_factory.engines[1].disposed
    assert new.generation == old.generation + 1
    with pytest.raises(StaleEngineHandle):
        old.engine


def test_same_kind_keeps_the_engine(header_converter, engine_factory, make_document) -> None:
    registry = _registry(header_converter, engine_factory)
    old = registry.get_engine(make_document("a.src", "ok", version=1))
    new = registry.get_engine(make_document("a.src", "changed", version=2))
    assert new is old
    assert not old.is_stale


def test_first_attach_of_another_kind_does_not_restart(engine_factory, make_document) -> None:
    converter = HeaderConverter(kind=StructuralKind.SCRIPT_ONLY)
    registry = _registry(converter, engine_factory)
    first = registry.get_engine(make_document("a.src", "ok"))
    converter.kind = StructuralKind.MARKUP_SCRIPT
    second = registry.get_engine(make_document("b.src", "ok"))
    assert first is second


def test_invalid_config_falls_back_to_defaults(
    header_converter, engine_factory, make_document, write_config, caplog
) -> None:
    write_config("[engine\nstrict = ")
    registry = _registry(header_converter, engine_factory)
    with caplog.at_level(logging.WARNING, logger="veneer"):
        handle = registry.get_engine(make_document("a.src", "ok"))
    context = next(iter(registry.contexts.values()))
    assert context.options == {**DEFAULT_OPTIONS, **FORCED_OPTIONS}
    assert context.file_names == ()
    assert handle.engine is engine_factory.engines[0]
    assert "falling back to default engine options" in caplog.text


def test_forced_options_override_user_options(
    header_converter, engine_factory, make_document, write_config
) -> None:
    write_config('[engine]\nno_emit = false\nstrict = true\ntarget = "es2020"\n')
    registry = _registry(header_converter, engine_factory)
    registry.get_engine(make_document("a.src", "ok"))
    options = next(iter(registry.contexts.values())).options
    assert options["no_emit"] is True
    assert options["strict"] is True
    assert options["target"] == "es2020"
    assert options["jsx"] == "preserve"


def test_host_lists_declared_attached_and_shim_files(
    tmp_path: Path, header_converter, engine_factory, make_document, write_config
) -> None:
    (tmp_path / "lib.src").write_text("x", encoding="utf-8")
    (tmp_path / "util.ts").write_text("y", encoding="utf-8")
    write_config('[project]\nfiles = ["lib.src", "util.ts"]\n')
    registry = _registry(
        header_converter, engine_factory, shim_files=("/shims/env.d.ts",)
    )
    document = make_document("a.src", "ok")
    registry.get_engine(document)
    host = engine_factory.engines[0].host
    assert host.list_files() == (
        str(tmp_path / "lib.src.ts"),
        str(tmp_path / "util.ts"),
        "/shims/env.d.ts",
        document.path + ".ts",
    )


def test_detach_keeps_declared_files(
    tmp_path: Path, header_converter, engine_factory, make_document, write_config
) -> None:
    (tmp_path / "lib.src").write_text("x", encoding="utf-8")
    write_config('[project]\nfiles = ["lib.src"]\n')
    registry = _registry(header_converter, engine_factory)
    opened = make_document("a.src", "ok")
    declared = make_document("lib.src", "x")
    registry.get_engine(opened)
    registry.get_engine(declared)
    host = engine_factory.engines[0].host

    registry.detach(opened)
    registry.detach(declared)

    assert opened.path + ".ts" not in host
    assert declared.path + ".ts" in host
    context = next(iter(registry.contexts.values()))
    assert context.documents == {}
    assert set(context.kinds) == {opened.path, declared.path}


def test_reopening_a_declared_file_with_another_kind_restarts(
    tmp_path: Path, engine_factory, make_document, write_config
) -> None:
    (tmp_path / "lib.src").write_text("x", encoding="utf-8")
    write_config('[project]\nfiles = ["lib.src"]\n')
    converter = HeaderConverter(kind=StructuralKind.SCRIPT_ONLY)
    registry = _registry(converter, engine_factory)
    old = registry.get_engine(make_document("lib.src", "x", version=1))
    registry.detach(make_document("lib.src", "x", version=1))

    converter.kind = StructuralKind.MARKUP_SCRIPT
    new = registry.get_engine(make_document("lib.src", "<p>x</p>", version=2))

    assert new is not old
    assert old.is_stale
    assert new.generation == 2


def test_file_loaded_by_the_engine_restarts_when_opened_as_another_kind(
    tmp_path: Path, engine_factory, make_document
) -> None:
    (tmp_path / "dep.src").write_text("x", encoding="utf-8")
    converter = HeaderConverter(kind=StructuralKind.SCRIPT_ONLY)
    registry = _registry(converter, engine_factory)
    old = registry.get_engine(make_document("main.src", "ok"))
    host = engine_factory.engines[0].host
    assert host.snapshot_of(str(tmp_path / "dep.src.ts")) == "// generated\nx"

    converter.kind = StructuralKind.MARKUP_SCRIPT
    new = registry.get_engine(make_document("dep.src", "<p>x</p>", version=1))

    assert new is not old
    assert engine_factory.engines[0].disposed


def test_restart_waits_for_queries_in_flight(engine_factory, make_document) -> None:
    converter = HeaderConverter(kind=StructuralKind.SCRIPT_ONLY)
    registry = _registry(converter, engine_factory)
    registry.get_engine(make_document("a.src", "ok", version=1))
    context = registry.context_for(make_document("a.src", "ok", version=1))
    old = engine_factory.engines[0]
    entered = threading.Event()
    release = threading.Event()
    seen: list[bool] = []

    def _query() -> None:
        with context.engine_scope() as engine:
            entered.set()
            release.wait(5)
            seen.append(engine.disposed)

    querying = threading.Thread(target=_query)
    querying.start()
    assert entered.wait(5)

    converter.kind = StructuralKind.MARKUP_SCRIPT
    restarting = threading.Thread(
        target=registry.get_engine,
        args=(make_document("a.src", "<p>ok</p>", version=2),),
    )
    restarting.start()
    restarting.join(0.2)
    assert restarting.is_alive()
    assert not old.disposed

    release.set()
    querying.join(5)
    restarting.join(5)
    assert seen == [False]
    assert old.disposed
    assert context.handle.generation == 2


def test_detach_of_unknown_project_is_a_noop(
    header_converter, engine_factory, make_document
) -> None:
    registry = _registry(header_converter, engine_factory)
    registry.detach(make_document("a.src", "ok"))
    assert dict(registry.contexts) == {}


def test_engine_scope_yields_current_engine(
    header_converter, engine_factory: RecordingFactory, make_document
) -> None:
    registry = _registry(header_converter, engine_factory)
    document = make_document("a.src", "ok")
    registry.get_engine(document)
    with registry.context_for(document).engine_scope() as engine:
        assert engine is engine_factory.engines[0]
