from __future__ import annotations

import fnmatch
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TypeAlias, runtime_checkable

from veneer.exceptions import ConfigParseFailure
from veneer.json_types import EngineOptions, JSONObject

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "veneer.toml"

TomlTable: TypeAlias = dict[str, object]

DEFAULT_OPTIONS: EngineOptions = {
    "allow_non_ts_extensions": True,
    "target": "latest",
    "module": "esnext",
    "module_resolution": "node",
    "allow_js": True,
}

# Applied over user options: the engine must never emit files.
FORCED_OPTIONS: EngineOptions = {
    "no_emit": True,
    "declaration": False,
    "jsx": "preserve",
    "jsx_factory": "h",
    "skip_lib_check": True,
}


@dataclass(frozen=True)
class ProjectConfig:
    options: EngineOptions
    file_names: tuple[str, ...] = ()


@runtime_checkable
class ConfigLoader(Protocol):
    def find_config(self, directory: str) -> str | None: ...

    def parse_config(self, config_path: str) -> ProjectConfig: ...


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseFailure(str(path), str(exc)) from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigParseFailure(str(path), str(exc)) from exc
    return data


def _section(data: TomlTable, name: str, path: Path) -> TomlTable:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigParseFailure(str(path), f"[{name}] must be a table")
    return section


def _string_list(section: TomlTable, key: str, path: Path) -> list[str]:
    value = section.get(key, [])
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigParseFailure(str(path), f"'{key}' must be a list of strings")
    return list(value)


def merge_options(
    defaults: EngineOptions,
    user: JSONObject,
    forced: EngineOptions = FORCED_OPTIONS,
) -> EngineOptions:
    merged = dict(defaults)
    for key, value in user.items():
        if value is None:
            continue
        merged[key] = value
    merged.update(forced)
    return merged


class TomlConfigLoader:
    """Finds and reads ``veneer.toml`` project files.

    ``[engine]`` is passed to the engine as options. ``[project]`` lists the
    declared files: ``files`` are taken as given, ``include`` globs are
    expanded and ``exclude`` globs filter both, all relative to the directory
    holding the config file.
    """

    def __init__(self, config_names: tuple[str, ...] = (DEFAULT_CONFIG_NAME,)) -> None:
        self.config_names = tuple(config_names)

    def find_config(self, directory: str) -> str | None:
        start = Path(directory).absolute()
        for candidate in (start, *start.parents):
            for name in self.config_names:
                path = candidate / name
                if path.is_file():
                    return str(path)
        return None

    def parse_config(self, config_path: str) -> ProjectConfig:
        path = Path(config_path)
        data = _load_toml(path)
        engine = _section(data, "engine", path)
        project = _section(data, "project", path)
        base = path.parent
        excludes = _string_list(project, "exclude", path)

        def _excluded(candidate: Path) -> bool:
            try:
                relative = candidate.relative_to(base).as_posix()
            except ValueError:
                relative = candidate.as_posix()
            return any(fnmatch.fnmatch(relative, pattern) for pattern in excludes)

        names: dict[str, None] = {}
        for entry in _string_list(project, "files", path):
            candidate = base / entry
            if not _excluded(candidate):
                names[str(candidate)] = None
        for pattern in _string_list(project, "include", path):
            for candidate in sorted(base.glob(pattern)):
                if candidate.is_file() and not _excluded(candidate):
                    names[str(candidate)] = None
        logger.debug("parsed %s: %d declared files", config_path, len(names))
        return ProjectConfig(options=dict(engine), file_names=tuple(names))
