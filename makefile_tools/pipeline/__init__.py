"""
Configure pipeline: shared context, command runner, cache and operations.
"""

from .cache import CacheDocument, ConfigurationCache
from .configure import ConfigurePipeline
from .context import PipelineContext
from .operations import BuildOperations, parse_environment, run_pre_configure
from .runner import AsyncCommandRunner, kill_process_tree

__all__ = [
    "CacheDocument",
    "ConfigurationCache",
    "ConfigurePipeline",
    "PipelineContext",
    "BuildOperations",
    "parse_environment",
    "run_pre_configure",
    "AsyncCommandRunner",
    "kill_process_tree",
]
