from __future__ import annotations

import importlib

from veneer.invariants import never


def load_object(reference: str) -> object:
    """Import ``"package.module:attribute"`` and return the attribute.

    Dotted attribute paths after the colon are followed, so
    ``"pkg.mod:Factory.create"`` works as well.
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        never("plugin reference must look like 'module:attribute'", reference=reference)
    module = importlib.import_module(module_name)
    target: object = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            never("plugin attribute not found", reference=reference, missing=part)
    return target


def instantiate(reference: str) -> object:
    """Load a reference and call it when it names a class or factory."""
    target = load_object(reference)
    return target() if callable(target) else target
