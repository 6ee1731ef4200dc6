#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mutable state shared by the configure, build and pre-configure operations.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set

from loguru import logger

from ..core.models import LaunchTarget, Operation
from ..provider.builder import ConfigurationProviderBuilder


@dataclass
class PipelineContext:
    """
    State passed explicitly through every pipeline operation.

    ``active`` holds the operations currently running; a new operation is
    refused while any other is active.
    """

    current_target: str = ""
    current_launch_target: str = ""
    provider: ConfigurationProviderBuilder = field(default_factory=ConfigurationProviderBuilder)
    environment: Dict[str, str] = field(default_factory=dict)
    completed_configure_in_session: bool = False
    configure_dirty: bool = True
    configure_in_background: bool = False
    current_pid: Optional[int] = None
    active: Set[Operation] = field(default_factory=set)

    @property
    def snapshot(self):
        return self.provider.snapshot

    @property
    def build_targets(self):
        return self.provider.snapshot.build_targets

    @property
    def launch_targets(self):
        return self.provider.snapshot.launch_targets

    def blocked_by(self, operation: Operation) -> Optional[Operation]:
        """The operation that prevents ``operation`` from starting, if any."""
        for active in (Operation.PRE_CONFIGURE, Operation.CONFIGURE, Operation.BUILD):
            if active in self.active:
                logger.warning(
                    f"Cannot start {operation.name.lower()} while "
                    f"{active.name.lower()} is running"
                )
                return active
        return None

    def blocked_for_reading(self) -> Optional[Operation]:
        """
        The operation that keeps the target lists from being read, if any.

        A configure that loaded the cache only refines lists that are already
        usable, so it stops blocking readers until it finishes.
        """
        if Operation.PRE_CONFIGURE in self.active:
            return Operation.PRE_CONFIGURE
        if Operation.CONFIGURE in self.active and not self.configure_in_background:
            return Operation.CONFIGURE
        return None

    @contextmanager
    def running(self, operation: Operation) -> Iterator[None]:
        self.active.add(operation)
        try:
            yield
        finally:
            self.active.discard(operation)
            if operation is Operation.CONFIGURE:
                self.configure_in_background = False

    def select_launch_target(self, canonical: str) -> Optional[LaunchTarget]:
        """Select a launch target by canonical string; empty clears it."""
        if not canonical:
            self.current_launch_target = ""
            return None
        target = LaunchTarget.from_canonical(canonical)
        if target is None:
            logger.warning(f"Malformed launch target: {canonical}")
            return None
        self.current_launch_target = canonical
        return target

    def current_launch(self) -> Optional[LaunchTarget]:
        if not self.current_launch_target:
            return None
        return LaunchTarget.from_canonical(self.current_launch_target)

    def set_target(self, target: str) -> None:
        if target != self.current_target:
            logger.info(f"Build target set to '{target}'")
            self.current_target = target
            self.configure_dirty = True
