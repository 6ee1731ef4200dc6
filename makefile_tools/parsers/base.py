"""
Chunked scanning shared by the trace extractors.

Every extractor walks the trace in fixed-size chunks of lines, checks the
cancellation token between chunks and yields control to the event loop
so other pending work keeps running during very long scans.
"""

import asyncio
from typing import AsyncIterator, List, Optional, Sequence

from ..core.progress import (
    CancellationToken,
    NullProgressReporter,
    ProgressEvent,
    ProgressReporter,
)


async def iter_chunks(
    lines: Sequence[str],
    chunk_size: int,
    cancel: Optional[CancellationToken] = None,
    progress: Optional[ProgressReporter] = None,
    status: str = "",
) -> AsyncIterator[List[str]]:
    """
    Yield consecutive chunks of ``lines``.

    Raises OperationCancelledError on entry and before every chunk once
    ``cancel`` has fired.
    """
    cancel = cancel or CancellationToken()
    progress = progress or NullProgressReporter()
    chunk_size = max(1, chunk_size)

    cancel.raise_if_cancelled(status)
    for start in range(0, len(lines), chunk_size):
        cancel.raise_if_cancelled(status)
        if status:
            progress.report(ProgressEvent.status(status))
        yield list(lines[start:start + chunk_size])
        progress.report(ProgressEvent.step())
        await asyncio.sleep(0)


def split_lines(trace: str) -> List[str]:
    return trace.replace("\r\n", "\n").split("\n")
