#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Debug and run descriptions for the selected launch target.
"""

from __future__ import annotations

import shlex
from typing import Any, Dict, List, Optional

from loguru import logger

from .core.models import LaunchTarget
from .pipeline.context import PipelineContext


def debug_configuration(target: LaunchTarget, platform: str) -> Dict[str, Any]:
    """Debugger launch configuration for a target, cppvsdbg on Windows and cppdbg elsewhere."""
    name = target.binary_path.replace("\\", "/").rsplit("/", 1)[-1]
    config: Dict[str, Any] = {
        "type": "cppvsdbg" if platform == "win32" else "cppdbg",
        "name": f"Debug {name}",
        "request": "launch",
        "program": target.binary_path,
        "cwd": target.working_directory,
        "args": list(target.arguments),
    }
    if platform != "win32":
        config["MIMode"] = "lldb" if platform == "darwin" else "gdb"
    return config


def run_command_line(target: LaunchTarget) -> List[str]:
    return [target.binary_path, *target.arguments]


class Launcher:
    """Resolves the selected launch target of a pipeline context."""

    def __init__(self, context: PipelineContext, platform: str) -> None:
        self.context = context
        self.platform = platform

    def resolve(self, canonical: Optional[str] = None) -> Optional[LaunchTarget]:
        """The target named by ``canonical``, or the current selection."""
        blocker = self.context.blocked_for_reading()
        if blocker:
            logger.warning(f"Launch targets are not available while {blocker.name.lower()} is running")
            return None

        if canonical:
            if canonical not in self.context.launch_targets:
                logger.warning(f"Launch target {canonical} was not found by the last configure")
            return self.context.select_launch_target(canonical)

        target = self.context.current_launch()
        if target is None and len(self.context.launch_targets) == 1:
            logger.info("Selecting the only available launch target")
            target = self.context.select_launch_target(self.context.launch_targets[0])
        if target is None:
            logger.warning("No launch target is selected")
        return target

    def debug_configuration(self, canonical: Optional[str] = None) -> Optional[Dict[str, Any]]:
        target = self.resolve(canonical)
        return debug_configuration(target, self.platform) if target else None

    def run_command(self, canonical: Optional[str] = None) -> Optional[str]:
        target = self.resolve(canonical)
        if target is None:
            return None
        return shlex.join(run_command_line(target))
