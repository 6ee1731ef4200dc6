#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pre-configure and build operations that share the configure mutual exclusion.
"""

from __future__ import annotations

import os
import re
import time
from typing import Dict, List, Optional

from loguru import logger

from ..core.errors import OperationCancelledError, ToolNotFoundError
from ..core.interfaces import CommandRunner
from ..core.models import CommandResult, ConfigureResult, Operation
from ..core.progress import CancellationToken
from ..utils.config import ConfigureSettings
from .configure import ConfigurePipeline
from .context import PipelineContext
from .runner import kill_process_tree

_ENV_LINE = re.compile(r"^([A-Za-z_][A-Za-z0-9_()]*)=(.*)$")


def pre_configure_command(settings: ConfigureSettings) -> tuple[str, List[str]]:
    """Shell command that runs the script and dumps the resulting environment."""
    script = str(settings.pre_configure_script)
    if settings.platform == "win32":
        return "cmd", ["/c", f'call "{script}" && set']
    return "/bin/sh", ["-c", f'. "{script}" && env']


def parse_environment(output: str, base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Variables from an ``env``/``set`` dump that differ from ``base``."""
    base = os.environ if base is None else base
    changed: Dict[str, str] = {}
    for line in output.splitlines():
        match = _ENV_LINE.match(line.rstrip("\r"))
        if match and base.get(match.group(1)) != match.group(2):
            changed[match.group(1)] = match.group(2)
    return changed


async def run_pre_configure(
    settings: ConfigureSettings,
    context: PipelineContext,
    runner: CommandRunner,
    cancel: Optional[CancellationToken] = None,
) -> ConfigureResult:
    """
    Run the pre-configure script and capture the environment it exports.

    Mutual exclusion is left to the caller; the configure pipeline runs this
    step while it already owns the configure slot.
    """
    if not settings.pre_configure_script:
        logger.info("No pre-configure script is set")
        return ConfigureResult.SUCCESS

    command, args = pre_configure_command(settings)
    logger.info(f"Pre-configuring: {settings.pre_configure_script}")
    start_time = time.time()
    try:
        if cancel:
            cancel.raise_if_cancelled("pre-configure")
        result = await _run_tracked(runner, context, command, args, str(settings.workspace_root))
        if cancel and cancel.is_cancelled:
            raise OperationCancelledError("Pre-configure cancelled")
    except OperationCancelledError:
        return ConfigureResult.CANCELLED
    except ToolNotFoundError:
        return ConfigureResult.NOT_FOUND

    if not result.success:
        logger.error(f"Pre-configure failed with exit code {result.exit_code}: {result.stderr.strip()}")
        return ConfigureResult.OTHER

    exported = parse_environment(result.stdout)
    context.environment.update(exported)
    logger.bind(execution_time=time.time() - start_time).success(
        f"Pre-configure succeeded, captured {len(exported)} environment variables"
    )
    return ConfigureResult.SUCCESS


async def _run_tracked(
    runner: CommandRunner,
    context: PipelineContext,
    command: str,
    args: List[str],
    cwd: str,
) -> CommandResult:
    def on_spawn(pid: int) -> None:
        context.current_pid = pid

    try:
        return await runner.run(
            command, args, cwd, env=context.environment or None, on_spawn=on_spawn
        )
    finally:
        context.current_pid = None


class BuildOperations:
    """Pre-configure and build entry points bound to one configure pipeline."""

    def __init__(self, pipeline: ConfigurePipeline) -> None:
        self.pipeline = pipeline

    @property
    def context(self) -> PipelineContext:
        return self.pipeline.context

    @property
    def settings(self) -> ConfigureSettings:
        return self.pipeline.settings

    async def pre_configure(self, cancel: Optional[CancellationToken] = None) -> ConfigureResult:
        if self.context.blocked_by(Operation.PRE_CONFIGURE):
            return ConfigureResult.BLOCKED

        cancel = cancel or CancellationToken()
        unregister = cancel.on_cancel(self._kill_outstanding_process)
        try:
            with self.context.running(Operation.PRE_CONFIGURE):
                return await run_pre_configure(
                    self.settings, self.context, self.pipeline.runner, cancel
                )
        finally:
            unregister()

    def build_arguments(self, target: str, clean: bool) -> List[str]:
        args: List[str] = []
        if clean:
            args.append("clean")
        if target:
            args.append(target)
        args.extend(self.settings.make_args)
        return args

    async def build_target(
        self,
        target: Optional[str] = None,
        *,
        clean: bool = False,
        cancel: Optional[CancellationToken] = None,
    ) -> ConfigureResult:
        """Build ``target`` (the current target by default), configuring first if dirty."""
        if self.context.blocked_by(Operation.BUILD):
            return ConfigureResult.BLOCKED

        cancel = cancel or CancellationToken()
        target = self.context.current_target if target is None else target

        # Dirty state always gets a clean configure; ``clean`` only affects the make invocation
        if self.context.configure_dirty and self.settings.configure_after_command:
            logger.info("The project needs to configure in order to build the current target properly")
            outcome = await self.pipeline.clean_configure(cancel=cancel)
            if outcome.result is ConfigureResult.CANCELLED:
                return outcome.result
            if not outcome.success:
                logger.warning("Building after a configure that did not fully succeed")

        args = self.build_arguments(target, clean)
        logger.info(f"Building target '{target or 'default'}': {self.settings.make_command} {' '.join(args)}")
        unregister = cancel.on_cancel(self._kill_outstanding_process)
        try:
            with self.context.running(Operation.BUILD):
                try:
                    cancel.raise_if_cancelled("build")
                    result = await _run_tracked(
                        self.pipeline.runner,
                        self.context,
                        self.settings.make_command,
                        args,
                        str(self.settings.workspace_root),
                    )
                except OperationCancelledError:
                    return ConfigureResult.CANCELLED
                except ToolNotFoundError:
                    return ConfigureResult.NOT_FOUND
        finally:
            unregister()

        if cancel.is_cancelled:
            return ConfigureResult.CANCELLED
        if not result.success:
            logger.error(f"Build of '{target or 'default'}' failed with exit code {result.exit_code}")
            return ConfigureResult.OTHER

        logger.bind(execution_time=result.execution_time).success(
            f"Build of '{target or 'default'}' succeeded in {result.execution_time:.2f}s"
        )
        return ConfigureResult.SUCCESS

    def _kill_outstanding_process(self) -> None:
        if self.context.current_pid is not None:
            kill_process_tree(self.context.current_pid)
