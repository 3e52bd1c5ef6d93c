from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from veneer.project.config import DEFAULT_CONFIG_NAME


class DiagnosticsSettings(BaseModel):
    enable: bool = True
    semantic: bool = True


class ServerSettings(BaseModel):
    """Settings accepted in the client's ``initializationOptions``.

    ``converter`` and ``engine`` are ``"module:attribute"`` references. The
    converter reference may name a class, a factory or an instance; the
    engine reference names the factory called with each project's host.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    diagnostics: DiagnosticsSettings = DiagnosticsSettings()
    converter: Optional[str] = None
    engine: Optional[str] = None
    shim_files: List[str] = Field(default_factory=list, alias="shimFiles")
    config_names: List[str] = Field(
        default_factory=lambda: [DEFAULT_CONFIG_NAME], alias="configNames"
    )
    log_level: Optional[str] = Field(default=None, alias="logLevel")
