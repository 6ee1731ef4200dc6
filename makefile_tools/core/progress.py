#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cancellation and progress reporting shared by the parsers and the pipeline.
"""

from __future__ import annotations

from enum import Enum, auto
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from loguru import logger

from .errors import OperationCancelledError


class ProgressEventKind(Enum):
    """Kinds of progress events."""

    STATUS = auto()
    INCREMENT = auto()


@dataclass(frozen=True)
class ProgressEvent:
    """A status message or a progress increment."""

    kind: ProgressEventKind
    message: str = ""
    increment: int = 0

    @classmethod
    def status(cls, message: str) -> ProgressEvent:
        return cls(ProgressEventKind.STATUS, message=message)

    @classmethod
    def step(cls, increment: int = 1, message: str = "") -> ProgressEvent:
        return cls(ProgressEventKind.INCREMENT, message=message, increment=increment)


class ProgressReporter(Protocol):
    """Receives progress events from a long running operation."""

    def report(self, event: ProgressEvent) -> None: ...


class LoggingProgressReporter:
    """Progress reporter that forwards status changes to the log."""

    def __init__(self) -> None:
        self.total = 0
        self._last_status: Optional[str] = None

    def report(self, event: ProgressEvent) -> None:
        if event.kind is ProgressEventKind.INCREMENT:
            self.total += event.increment
            return
        # Chunked scans repeat the same status many times
        if event.message != self._last_status:
            self._last_status = event.message
            logger.debug(event.message)


class NullProgressReporter:
    def report(self, event: ProgressEvent) -> None:
        pass


class CancellationToken:
    """
    Cooperative cancellation flag.

    Parsers poll ``is_cancelled`` at chunk boundaries. Callbacks registered
    with ``on_cancel`` run synchronously the first time ``cancel`` is called,
    which is where the pipeline hooks the process tree kill.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        logger.info("Cancellation requested")
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        if self._cancelled:
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._cancelled:
            raise OperationCancelledError(
                f"Cancelled during {where}" if where else "Operation cancelled"
            )
