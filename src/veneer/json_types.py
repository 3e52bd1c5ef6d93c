"""JSON-like value types for options handed across the engine boundary.

Engine options come from TOML project files and LSP initialization payloads
and are passed to the engine verbatim, so their value space is declared as
JSON-compatible rather than ``Any``.
"""

from __future__ import annotations

from typing import TypeAlias


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
EngineOptions: TypeAlias = JSONObject
