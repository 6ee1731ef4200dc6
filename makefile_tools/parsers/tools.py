"""
Recognition of tool invocations on trace lines.
"""

import os
import re
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from loguru import logger

from ..core.models import ParseOptions, ToolInvocation
from ..utils.paths import make_full_path, remove_quotes

COMPILER_NAMES: Tuple[str, ...] = (
    "clang++", "clang", "cl", "gcc", "cc", "icc", "icl", "g++", "c++",
)
LINKER_NAMES: Tuple[str, ...] = (
    "link", "ilink", "ld", "gcc", "clang++", "clang", "cc", "g++", "c++",
)
SOURCE_EXTENSIONS: Tuple[str, ...] = ("cpp", "cc", "cxx", "c")


@lru_cache(maxsize=64)
def _tool_pattern(tool_names: Tuple[str, ...], windows: bool) -> re.Pattern:
    escaped = [re.escape(name) for name in tool_names]
    alternatives = []
    if windows:
        alternatives.extend(f"{name}\\.exe" for name in escaped)
    alternatives.extend(escaped)
    return re.compile(r'^[\s"]*(.*?)(' + "|".join(alternatives) + r')[\s"]+(.*)$')


class ToolInvocationMatcher:
    """
    Matches trace lines against a set of tool names.

    A path written before the tool name must resolve to an existing file,
    otherwise the match is rejected: ``link.exe /out:cl.exe`` must not be
    taken for a compiler call. A bare tool name is accepted even when it
    cannot be found so callers can look it up in the search path.
    """

    def __init__(self, options: ParseOptions):
        self.options = options
        self.pathmod = options.pathmod

    def match(
        self, line: str, tool_names: Sequence[str], current_dir: str
    ) -> Optional[ToolInvocation]:
        pattern = _tool_pattern(tuple(tool_names), self.options.is_windows)
        if not (match := pattern.match(line)):
            return None

        path_in_trace = match.group(1).lstrip()
        tool_name = match.group(2)
        if self.options.is_windows and not self.pathmod.splitext(tool_name)[1]:
            tool_name += ".exe"

        full_path = remove_quotes(
            make_full_path(path_in_trace + tool_name, current_dir, self.pathmod)
        )
        found = os.path.isfile(full_path)

        if path_in_trace and not found:
            logger.debug(f"Rejecting {tool_name} match, {full_path} does not exist")
            return None

        return ToolInvocation(
            path_in_trace=path_in_trace,
            full_path=full_path,
            found=found,
            arguments=match.group(3),
        )
