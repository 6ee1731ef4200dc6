"""
Build target extraction from a ``make --print-data-base`` dump.
"""

import re
from typing import AsyncIterator, List, Optional

from loguru import logger

from ..core.models import ParseOptions
from ..core.progress import CancellationToken, ProgressReporter
from .base import iter_chunks, split_lines


class BuildTargetExtractor:
    """Yields target names in order of first appearance, without duplicates."""

    def __init__(self, options: ParseOptions, progress: Optional[ProgressReporter] = None):
        self.options = options
        self.progress = progress
        self.section_pattern = re.compile(
            r"^# Files\n*(.*?)^# Finished Make data base", re.MULTILINE | re.DOTALL
        )
        self.target_pattern = re.compile(r"^(\S+?)::?(?:\s|$)")
        self.not_a_target = "# Not a target:"

    def sections(self, dump: str) -> List[str]:
        return [m.group(1) for m in self.section_pattern.finditer(dump.replace("\r\n", "\n"))]

    async def extract(
        self, dump: str, cancel: Optional[CancellationToken] = None
    ) -> AsyncIterator[str]:
        cancel = cancel or CancellationToken()
        seen = set()

        for section in self.sections(dump):
            previous = ""
            async for chunk in iter_chunks(
                split_lines(section),
                self.options.chunk_size,
                cancel,
                self.progress,
                "Parsing build targets",
            ):
                found = []
                for line in chunk:
                    name = self.target_name(line, previous)
                    if line.strip():
                        previous = line
                    if name and name not in seen:
                        seen.add(name)
                        found.append(name)
                cancel.raise_if_cancelled("parsing build targets")
                for name in found:
                    yield name

        logger.debug(f"Found {len(seen)} build targets")

    def target_name(self, line: str, previous: str) -> Optional[str]:
        if not line or line[0] in "#.":
            return None
        if previous.startswith(self.not_a_target):
            return None
        if match := self.target_pattern.match(line):
            return match.group(1)
        return None
