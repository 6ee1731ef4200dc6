"""
Core types for makefile_tools: models, errors, progress and collaborator protocols.
"""

from .models import (
    ConfigureResult,
    Operation,
    Language,
    TargetArchitecture,
    ParseOptions,
    ToolInvocation,
    CompileUnit,
    LaunchTarget,
    SubphaseResult,
    ConfigureOutcome,
    CommandResult,
)
from .errors import (
    ErrorContext,
    MakefileToolsError,
    ConfigurationError,
    TraceError,
    ToolNotFoundError,
    OperationCancelledError,
    CacheError,
    handle_configure_error,
)
from .progress import (
    ProgressEventKind,
    ProgressEvent,
    ProgressReporter,
    LoggingProgressReporter,
    NullProgressReporter,
    CancellationToken,
)
from .interfaces import CommandRunner, ConfigurationSink, ToolLocator

__all__ = [
    "ConfigureResult",
    "Operation",
    "Language",
    "TargetArchitecture",
    "ParseOptions",
    "ToolInvocation",
    "CompileUnit",
    "LaunchTarget",
    "SubphaseResult",
    "ConfigureOutcome",
    "CommandResult",
    "ErrorContext",
    "MakefileToolsError",
    "ConfigurationError",
    "TraceError",
    "ToolNotFoundError",
    "OperationCancelledError",
    "CacheError",
    "handle_configure_error",
    "ProgressEventKind",
    "ProgressEvent",
    "ProgressReporter",
    "LoggingProgressReporter",
    "NullProgressReporter",
    "CancellationToken",
    "CommandRunner",
    "ConfigurationSink",
    "ToolLocator",
]
