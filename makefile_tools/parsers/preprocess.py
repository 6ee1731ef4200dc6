"""
Normalization of raw dry-run output before it is parsed.
"""

import asyncio
import re
from typing import List, Optional

from loguru import logger

from ..core.models import ParseOptions
from ..core.progress import CancellationToken, ProgressReporter
from .base import iter_chunks, split_lines

COMPILE_MODE = "--mode=compile"
LINK_MODE = "--mode=link"


class TracePreprocessor:
    """
    Rewrites a trace so that every command sits on its own line.

    Steps, in order: split ``&&`` and ``;`` command lists, join backslash
    line continuations, strip libtool mode prefixes, drop make database
    lines with unexpanded variables and, for cl on Windows, split an
    inline ``/link`` into a separate linker command.
    """

    def __init__(self, options: ParseOptions, progress: Optional[ProgressReporter] = None):
        self.options = options
        self.progress = progress
        self.separator_pattern = re.compile(r"\s+&&\s+|;")
        self.continuation_pattern = re.compile(r"[ \t]+\\\n")
        self.inline_link_pattern = re.compile(r" /link ")

    async def preprocess(
        self, raw_trace: str, cancel: Optional[CancellationToken] = None
    ) -> str:
        cancel = cancel or CancellationToken()
        cancel.raise_if_cancelled("preprocessing")

        trace = raw_trace.replace("\r\n", "\n")
        trace = self.separator_pattern.sub("\n", trace)
        trace = self.continuation_pattern.sub(" ", trace)
        await asyncio.sleep(0)

        lines: List[str] = []
        async for chunk in iter_chunks(
            split_lines(trace),
            self.options.chunk_size,
            cancel,
            self.progress,
            "Preprocessing the dry-run output",
        ):
            for line in chunk:
                line = self.strip_libtool_mode(line)
                # Produced by --print-data-base and useless outside target parsing
                if "$(" in line:
                    continue
                lines.append(line)

        cancel.raise_if_cancelled("preprocessing")
        trace = "\n".join(lines)
        if self.options.is_windows:
            # /link stays on the cl line so it is not taken for a compile producing an exe
            trace = self.inline_link_pattern.sub(" /link \n link.exe ", trace)
        return trace

    def strip_libtool_mode(self, line: str) -> str:
        compile_idx = line.find(COMPILE_MODE)
        link_idx = line.find(LINK_MODE)

        if compile_idx >= 0 and link_idx >= 0:
            logger.warning(
                f"Both {COMPILE_MODE} and {LINK_MODE} on one line, "
                f"skipping link inference for: {line}"
            )
            # The trailing marker tells the launch target scan to leave the line alone
            remainder = line[compile_idx + len(COMPILE_MODE):].replace(LINK_MODE, "")
            return f"{remainder.rstrip()} {LINK_MODE}"
        if compile_idx >= 0:
            return line[compile_idx + len(COMPILE_MODE):]
        if link_idx >= 0:
            return line[link_idx + len(LINK_MODE):]
        return line
