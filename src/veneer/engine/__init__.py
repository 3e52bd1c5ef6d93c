from veneer.engine.contract import AnalysisEngine, EngineFactory, EngineHandle, EngineHost
from veneer.engine.model import (
    CodeFixAction,
    CompletionEntry,
    CompletionInfo,
    DefinitionInfo,
    DiagnosticCategory,
    EngineDiagnostic,
    FileTextChanges,
    MessageChain,
    NavigationTree,
    QuickInfo,
    ResolvedModule,
    TextChange,
    TextSpan,
    flatten_message,
)

__all__ = [
    "AnalysisEngine",
    "CodeFixAction",
    "CompletionEntry",
    "CompletionInfo",
    "DefinitionInfo",
    "DiagnosticCategory",
    "EngineDiagnostic",
    "EngineFactory",
    "EngineHandle",
    "EngineHost",
    "FileTextChanges",
    "MessageChain",
    "NavigationTree",
    "QuickInfo",
    "ResolvedModule",
    "TextChange",
    "TextSpan",
    "flatten_message",
]
