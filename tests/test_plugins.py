from __future__ import annotations

import pytest

from veneer.engine.contract import EngineHandle
from veneer.exceptions import NeverRaise, NeverThrown, StaleEngineHandle
from veneer.invariants import never
from veneer.plugins import instantiate, load_object
from tests.fakes import HeaderConverter, ScanningEngine, scanning_engine_factory


def test_load_object_follows_dotted_attributes() -> None:
    assert load_object("tests.fakes:scanning_engine_factory") is scanning_engine_factory
    assert load_object("tests.fakes:HeaderConverter.convert") is HeaderConverter.convert


def test_instantiate_calls_classes_and_keeps_values() -> None:
    assert isinstance(instantiate("tests.fakes:HeaderConverter"), HeaderConverter)
    assert instantiate("tests.fakes:MARKER") == "bad"


@pytest.mark.parametrize("reference", ["tests.fakes", ":attr", "tests.fakes:", "tests.fakes:Nope"])
def test_bad_references_are_invariant_violations(reference: str) -> None:
    with pytest.raises(NeverThrown):
        load_object(reference)


def test_never_carries_its_environment() -> None:
    with pytest.raises(NeverRaise) as excinfo:
        never("impossible", path="/p", version=3)
    assert excinfo.value.env == {"path": "/p", "version": 3}
    assert "impossible" in str(excinfo.value)


def test_engine_handle_releases_once() -> None:
    engine = ScanningEngine(host=None)
    handle = EngineHandle(generation=4, inner=engine)
    assert handle.engine is engine
    handle.release()
    handle.release()
    assert engine.disposed
    assert handle.is_stale
    with pytest.raises(StaleEngineHandle) as excinfo:
        handle.engine
    assert excinfo.value.generation == 4
