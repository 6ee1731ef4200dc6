#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Makefile Tools

Derives per-source-file compiler configuration, build targets and launch
targets from the dry-run output of make, without building anything.
"""

import sys
from loguru import logger

# Package metadata
__version__ = "1.0.0"
__author__ = "Max Qian"
__license__ = "GPL-3.0-or-later"

from .core.errors import (
    MakefileToolsError, ConfigurationError, TraceError,
    ToolNotFoundError, OperationCancelledError, CacheError
)
from .core.models import (
    ConfigureResult, ConfigureOutcome, CompileUnit, LaunchTarget, ParseOptions
)
from .core.progress import CancellationToken, ProgressEvent, ProgressEventKind
from .parsers import (
    BuildTargetExtractor, CompileUnitExtractor, LaunchTargetExtractor, TracePreprocessor
)
from .pipeline import BuildOperations, ConfigurePipeline, PipelineContext
from .provider import ConfigurationProviderBuilder, SourceFileConfiguration
from .utils.config import ConfigureSettings, SettingsLoader

# Configure loguru with defaults
logger.remove()
logger.add(
    sys.stderr,
    level="INFO",
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True
)


def get_tool_info() -> dict:
    """
    Get metadata about the makefile_tools package.

    Returns:
        dict: Name, version, description, author, license, platforms,
              entry points and requirements.
    """
    return {
        "name": "makefile_tools",
        "version": __version__,
        "description": "Dry-run trace parser and configure pipeline for makefile projects",
        "author": __author__,
        "license": __license__,
        "supported": True,
        "platform": ["windows", "linux", "macos"],
        "functions": [
            "configure",
            "clean_configure",
            "pre_configure",
            "build_target",
            "get_tool_info",
        ],
        "requirements": [
            "python>=3.11",
            "loguru",
            "pydantic>=2",
            "aiofiles",
            "psutil",
            "rich",
        ],
        "capabilities": [
            "compile-unit-extraction",
            "launch-target-discovery",
            "build-target-discovery",
            "cancellable-parsing",
            "configuration-cache",
        ],
    }


__all__ = [
    "MakefileToolsError",
    "ConfigurationError",
    "TraceError",
    "ToolNotFoundError",
    "OperationCancelledError",
    "CacheError",
    "ConfigureResult",
    "ConfigureOutcome",
    "CompileUnit",
    "LaunchTarget",
    "ParseOptions",
    "CancellationToken",
    "ProgressEvent",
    "ProgressEventKind",
    "BuildTargetExtractor",
    "CompileUnitExtractor",
    "LaunchTargetExtractor",
    "TracePreprocessor",
    "BuildOperations",
    "ConfigurePipeline",
    "PipelineContext",
    "ConfigurationProviderBuilder",
    "SourceFileConfiguration",
    "ConfigureSettings",
    "SettingsLoader",
    "get_tool_info",
    "__version__",
]
