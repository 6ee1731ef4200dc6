"""
Dry-run trace parsers.

This package recognizes directory changes, tool invocations and command
line switches in make dry-run output and turns them into compile units,
launch targets and build targets.
"""

from .base import iter_chunks
from .directory import DirectoryTracker
from .tools import (
    COMPILER_NAMES,
    LINKER_NAMES,
    SOURCE_EXTENSIONS,
    ToolInvocationMatcher,
)
from .switches import SwitchExtractor, RegexSwitchExtractor, DEFAULT_EXTRACTOR
from .preprocess import TracePreprocessor
from .compile_units import (
    CompileUnitExtractor,
    intellisense_mode,
    resolve_standard,
    target_architecture,
)
from .launch_targets import LaunchTargetExtractor
from .build_targets import BuildTargetExtractor

__all__ = [
    "iter_chunks",
    "DirectoryTracker",
    "COMPILER_NAMES",
    "LINKER_NAMES",
    "SOURCE_EXTENSIONS",
    "ToolInvocationMatcher",
    "SwitchExtractor",
    "RegexSwitchExtractor",
    "DEFAULT_EXTRACTOR",
    "TracePreprocessor",
    "CompileUnitExtractor",
    "intellisense_mode",
    "resolve_standard",
    "target_architecture",
    "LaunchTargetExtractor",
    "BuildTargetExtractor",
]
