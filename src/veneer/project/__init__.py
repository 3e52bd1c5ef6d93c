from veneer.project.config import (
    DEFAULT_CONFIG_NAME,
    DEFAULT_OPTIONS,
    FORCED_OPTIONS,
    ConfigLoader,
    ProjectConfig,
    TomlConfigLoader,
    merge_options,
)

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_OPTIONS",
    "FORCED_OPTIONS",
    "ConfigLoader",
    "ProjectConfig",
    "TomlConfigLoader",
    "merge_options",
]
