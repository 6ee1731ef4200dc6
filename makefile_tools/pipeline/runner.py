#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Asynchronous command runner and process tree termination.
"""

from __future__ import annotations

import os
import codecs
from pathlib import Path
import time
import asyncio
from typing import Callable, List, Mapping, Optional, Sequence

import psutil
from loguru import logger

from ..core.errors import ErrorContext, ToolNotFoundError
from ..core.interfaces import OutputCallback
from ..core.models import CommandResult


def kill_process_tree(pid: int) -> List[int]:
    """
    Kill ``pid`` and all of its descendants, children first.

    Failures are logged and never raised. Returns the pids that were signalled.
    """
    killed: List[int] = []
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"Process {pid} already exited")
        return killed

    try:
        children = root.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
        logger.warning(f"Could not enumerate children of {pid}: {e}")
        children = []

    for proc in reversed(children):
        try:
            proc.kill()
            killed.append(proc.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.warning(f"Failed to kill child process {proc.pid}: {e}")

    try:
        root.kill()
        killed.append(pid)
    except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
        logger.warning(f"Failed to kill process {pid}: {e}")

    logger.info(f"Killed process tree of {pid} ({len(killed)} processes)")
    return killed


class AsyncCommandRunner:
    """
    Runs commands with asyncio subprocesses and streams their output.

    A process that stays silent for ``stall_timeout`` seconds triggers a
    single warning; it is never killed for being slow.
    """

    def __init__(self, stall_timeout: float = 30.0, read_size: int = 4096) -> None:
        self.stall_timeout = stall_timeout
        self.read_size = read_size

    async def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: str,
        on_stdout: Optional[OutputCallback] = None,
        on_stderr: Optional[OutputCallback] = None,
        env: Optional[Mapping[str, str]] = None,
        on_spawn: Optional[Callable[[int], None]] = None,
    ) -> CommandResult:
        cmd_str = " ".join([command, *args])
        logger.info(f"Running async: {cmd_str}")

        process_env = os.environ.copy()
        if env:
            process_env.update(env)

        start_time = time.time()
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=process_env,
                cwd=cwd,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(
                f"Command not found: {command}",
                tool=command,
                cause=e,
                context=ErrorContext(command=cmd_str, working_directory=Path(cwd)),
            ) from e

        if on_spawn:
            on_spawn(process.pid)

        stdout_parts: List[str] = []
        stderr_parts: List[str] = []
        last_output = time.monotonic()
        warned = False

        async def pump(stream, parts: List[str], callback: Optional[OutputCallback]) -> None:
            nonlocal last_output
            # Multi-byte characters may straddle two reads
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            while chunk := await stream.read(self.read_size):
                last_output = time.monotonic()
                text = decoder.decode(chunk)
                if not text:
                    continue
                parts.append(text)
                if callback:
                    callback(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                parts.append(tail)
                if callback:
                    callback(tail)

        async def watch_stall() -> None:
            nonlocal warned
            while not warned:
                await asyncio.sleep(min(self.stall_timeout, 1.0))
                if time.monotonic() - last_output >= self.stall_timeout:
                    warned = True
                    logger.warning(
                        f"No output from '{cmd_str}' for {self.stall_timeout:.0f}s, "
                        "it may be waiting for input or stuck"
                    )

        watcher = asyncio.create_task(watch_stall())
        try:
            await asyncio.gather(
                pump(process.stdout, stdout_parts, on_stdout),
                pump(process.stderr, stderr_parts, on_stderr),
            )
            exit_code = await process.wait()
        finally:
            watcher.cancel()

        result = CommandResult(
            exit_code=exit_code,
            pid=process.pid,
            stdout="".join(stdout_parts),
            stderr="".join(stderr_parts),
            execution_time=time.time() - start_time,
        )
        logger.bind(execution_time=result.execution_time).debug(
            f"'{cmd_str}' exited with {exit_code} after {result.execution_time:.2f}s"
        )
        return result
