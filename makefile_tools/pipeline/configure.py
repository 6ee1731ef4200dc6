#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The configure pipeline.

A configure pass loads the previous cache, obtains a dry-run trace,
preprocesses it, extracts compile units, launch targets and build
targets from it, and persists the result. Each subphase reports a
result code and its elapsed time; exceptions never cross a subphase
boundary.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Tuple

import aiofiles
from loguru import logger

from ..core.errors import (
    ErrorContext,
    MakefileToolsError,
    OperationCancelledError,
    ToolNotFoundError,
    TraceError,
    handle_configure_error,
)
from ..core.interfaces import CommandRunner, ConfigurationSink, ToolLocator
from ..core.models import (
    ConfigureOutcome,
    ConfigureResult,
    Operation,
    SubphaseResult,
)
from ..core.progress import (
    CancellationToken,
    LoggingProgressReporter,
    ProgressEvent,
    ProgressReporter,
)
from ..parsers.build_targets import BuildTargetExtractor
from ..parsers.compile_units import CompileUnitExtractor
from ..parsers.launch_targets import LaunchTargetExtractor
from ..parsers.preprocess import TracePreprocessor
from ..provider.builder import ConfigurationProviderBuilder, merge_sorted
from ..utils.config import ConfigureSettings
from .cache import ConfigurationCache
from .context import PipelineContext
from .runner import AsyncCommandRunner, kill_process_tree


class ConfigurePipeline:
    """
    Orchestrates configure passes over a makefile project.

    Attributes:
        settings: Validated configure settings.
        context: Shared pipeline state (targets, selections, flags).
        runner: Command runner used for the dry-run invocations.
        sink: Optional consumer of the per-file configuration.
        progress: Receiver of progress events.
    """

    def __init__(
        self,
        settings: ConfigureSettings,
        context: Optional[PipelineContext] = None,
        *,
        runner: Optional[CommandRunner] = None,
        sink: Optional[ConfigurationSink] = None,
        progress: Optional[ProgressReporter] = None,
        locator: Optional[ToolLocator] = None,
    ) -> None:
        self.settings = settings
        self.context = context or PipelineContext()
        self.runner = runner or AsyncCommandRunner(stall_timeout=settings.stall_timeout)
        self.sink = sink
        self.progress = progress or LoggingProgressReporter()
        self.locator = locator
        self.cache = ConfigurationCache(settings.cache_file)
        self.options = settings.parse_options()

        logger.debug(
            f"Initialized {self.__class__.__name__} for {settings.workspace_root} "
            f"(make: {settings.make_command}, cache: {settings.cache_file})"
        )

    async def configure(
        self,
        *,
        clean: bool = False,
        update_targets: bool = True,
        cancel: Optional[CancellationToken] = None,
    ) -> ConfigureOutcome:
        """Run one configure pass, recursing once if the build target vanished."""
        if self.context.blocked_by(Operation.CONFIGURE):
            return ConfigureOutcome(result=ConfigureResult.BLOCKED)

        cancel = cancel or CancellationToken()
        start_time = time.time()
        unregister = cancel.on_cancel(self._kill_outstanding_process)
        try:
            with self.context.running(Operation.CONFIGURE):
                if self.settings.always_pre_configure and self.settings.pre_configure_script:
                    from .operations import run_pre_configure

                    pre_result = await run_pre_configure(
                        self.settings, self.context, self.runner, cancel
                    )
                    if pre_result is not ConfigureResult.SUCCESS:
                        logger.warning("Attempting to configure after a failed pre-configure")
                outcome = await self._configure_pass(clean, update_targets, cancel, recursive=False)
        finally:
            unregister()

        outcome.elapsed_time = time.time() - start_time
        if outcome.result is ConfigureResult.CANCELLED:
            self.context.configure_dirty = True
            logger.info("Configure was cancelled")
        elif outcome.result is ConfigureResult.SUCCESS:
            logger.success(f"Configure succeeded in {outcome.elapsed_time:.2f}s")
        else:
            logger.warning(
                f"There were errors during the configure process ({outcome.result.name.lower()}). "
                f"Inspect the raw trace at {self._trace_location()}"
            )
        return outcome

    async def clean_configure(
        self, *, update_targets: bool = True, cancel: Optional[CancellationToken] = None
    ) -> ConfigureOutcome:
        return await self.configure(clean=True, update_targets=update_targets, cancel=cancel)

    async def _configure_pass(
        self,
        clean: bool,
        update_targets: bool,
        cancel: CancellationToken,
        *,
        recursive: bool,
    ) -> ConfigureOutcome:
        outcome = ConfigureOutcome(result=ConfigureResult.SUCCESS, recursed=recursive)
        committed = False
        suffix = " (recursive)" if recursive else ""

        try:
            if clean:
                result, _ = await self._subphase(outcome, "clean_cache", self._clean_cache, cancel)
                if result.code is not ConfigureResult.SUCCESS:
                    return self._finish(outcome, result.code)

            if not self.context.completed_configure_in_session and not recursive:
                result, snapshot = await self._subphase(
                    outcome, "load_from_cache", self._load_from_cache, cancel
                )
                if result.cancelled:
                    return self._finish(outcome, ConfigureResult.CANCELLED)
                if snapshot is not None:
                    outcome.loaded_from_cache = True
                    self.context.configure_in_background = True

            result, obtained = await self._subphase(
                outcome, "obtain_trace", self._obtain_trace, clean, False, cancel
            )
            if result.code is not ConfigureResult.SUCCESS:
                return self._finish(outcome, result.code)
            trace, outcome.dry_run_exit_code = obtained

            self.progress.report(ProgressEvent.status(f"Preprocessing the dry-run output{suffix}"))
            result, preprocessed = await self._subphase(
                outcome, "preprocess", TracePreprocessor(self.options, self.progress).preprocess,
                trace, cancel,
            )
            if result.code is not ConfigureResult.SUCCESS:
                return self._finish(outcome, result.code)

            result, _ = await self._subphase(
                outcome, "parse_configuration", self._parse_configuration,
                preprocessed, clean, cancel,
            )
            if result.code is not ConfigureResult.SUCCESS:
                return self._finish(outcome, result.code)
            committed = True

            result, _ = await self._subphase(
                outcome, "parse_launch_targets", self._parse_launch_targets,
                preprocessed, clean, cancel,
            )
            if result.code is not ConfigureResult.SUCCESS:
                return self._finish(outcome, result.code)

            build_targets = self.context.build_targets
            if update_targets or not build_targets or build_targets == ["all"]:
                result, _ = await self._subphase(
                    outcome, "parse_build_targets", self._parse_build_targets, clean, cancel
                )
                if result.code is not ConfigureResult.SUCCESS:
                    return self._finish(outcome, result.code)

                target = self.context.current_target
                if target and target != "all" and target not in self.context.build_targets:
                    logger.info(
                        f"Current build target {target} is no longer present in the available list. "
                        "Unsetting the current build target."
                    )
                    self.context.current_target = ""
                    if not recursive:
                        logger.info("Automatically reconfiguring the project after a build target change")
                        inner = await self._configure_pass(True, update_targets, cancel, recursive=True)
                        inner.subphases[:0] = outcome.subphases
                        inner.loaded_from_cache = outcome.loaded_from_cache
                        committed = False
                        return inner

            self.context.completed_configure_in_session = True
            self.context.configure_dirty = False
            return self._finish(outcome, ConfigureResult.SUCCESS)
        finally:
            if committed and outcome.result is not ConfigureResult.CANCELLED:
                await self._subphase(outcome, "persist", self._persist, None)

    def _finish(self, outcome: ConfigureOutcome, code: ConfigureResult) -> ConfigureOutcome:
        if code is ConfigureResult.NOT_FOUND and outcome.loaded_from_cache:
            logger.warning("The dry-run could not run, using the configuration loaded from cache")
            code = ConfigureResult.OUT_OF_DATE
        outcome.result = code
        return outcome

    async def _subphase(
        self,
        outcome: ConfigureOutcome,
        name: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Tuple[SubphaseResult, Any]:
        """Run one subphase and convert its exceptions into a result code."""
        start_time = time.time()
        value = None
        cancel = next((a for a in args if isinstance(a, CancellationToken)), None)
        try:
            if cancel is not None:
                cancel.raise_if_cancelled(name)
            value = await func(*args)
            code = ConfigureResult.SUCCESS
        except OperationCancelledError:
            code = ConfigureResult.CANCELLED
        except ToolNotFoundError:
            code = ConfigureResult.NOT_FOUND
        except MakefileToolsError as e:
            logger.error(f"Subphase {name} failed: {e}")
            code = ConfigureResult.OTHER
        except Exception as e:
            logger.exception(f"Unexpected error in subphase {name}: {e}")
            error = handle_configure_error(name, e, context=ErrorContext(subphase=name))
            code = (
                ConfigureResult.NOT_FOUND if isinstance(error, ToolNotFoundError)
                else ConfigureResult.OTHER
            )

        result = SubphaseResult(name=name, code=code, elapsed_time=time.time() - start_time)
        outcome.subphases.append(result)
        logger.bind(execution_time=result.elapsed_time).info(
            f"{name} finished with {code.name.lower()} in {result.elapsed_time:.3f}s"
        )
        return result, value

    async def _load_from_cache(self, cancel: CancellationToken):
        snapshot = await self.cache.load()
        if snapshot is None:
            return None
        self.context.provider = ConfigurationProviderBuilder(snapshot)
        if self.sink:
            self.sink.update_configuration(
                dict(snapshot.file_index), list(snapshot.browse_path), clean=True
            )
        logger.info(
            f"Loaded {len(snapshot.file_index)} files, {len(snapshot.build_targets)} build targets "
            f"and {len(snapshot.launch_targets)} launch targets from cache"
        )
        return snapshot

    async def _obtain_trace(
        self, clean: bool, for_targets: bool, cancel: CancellationToken
    ) -> Tuple[str, Optional[int]]:
        """Read the user build log, or run the dry-run and capture its output."""
        build_log = self.settings.build_log
        if build_log:
            if not build_log.is_absolute():
                build_log = self.settings.workspace_root / build_log
            if build_log.is_file():
                try:
                    async with aiofiles.open(build_log, "r", encoding="utf-8", errors="replace") as f:
                        content = await f.read()
                    logger.info(f"Parsing the build log {build_log}")
                    return content, None
                except OSError as e:
                    logger.warning(f"Cannot read build log {build_log}, running make instead: {e}")
            else:
                logger.warning(f"Build log {build_log} not found, running make instead")

        args = self.dry_run_arguments(clean=clean, for_targets=for_targets)
        label = "for targets" if for_targets else "for configuration"
        logger.info(f"Generating dry-run output {label}: {self.settings.make_command} {' '.join(args)}")

        def on_stdout(_: str) -> None:
            self.progress.report(ProgressEvent.step(1, "Generating dry-run output"))

        def on_spawn(pid: int) -> None:
            self.context.current_pid = pid

        try:
            result = await self.runner.run(
                self.settings.make_command,
                args,
                str(self.settings.workspace_root),
                on_stdout=on_stdout,
                env=self.context.environment or None,
                on_spawn=on_spawn,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(
                f"Cannot run {self.settings.make_command}",
                tool=self.settings.make_command,
                cause=e,
            ) from e
        finally:
            self.context.current_pid = None

        # Output of a killed dry-run is incomplete and must not reach the cache
        if cancel.is_cancelled or result.cancelled:
            raise OperationCancelledError("Dry-run cancelled")

        if result.exit_code != 0:
            logger.warning(
                f"The make dry-run command failed with exit code {result.exit_code}. "
                + ("The set of build targets may be incomplete." if for_targets
                   else "IntelliSense may work only partially or not at all.")
            )
            if result.stderr:
                logger.warning(result.stderr.strip())

        await self._write_trace(
            self.settings.targets_log if for_targets else self.settings.dry_run_log,
            result.stdout,
        )
        return result.stdout, result.exit_code

    def dry_run_arguments(self, *, clean: bool, for_targets: bool) -> List[str]:
        """Make arguments for a dry-run (configuration) or database dump (targets)."""
        args: List[str] = []
        if not for_targets and self.context.current_target:
            args.append(self.context.current_target)
        args.extend(self.settings.make_args)
        args.append(self.settings.dry_run_switch)
        if for_targets:
            args.append(self.settings.database_switch)
            return args
        if clean and self.settings.force_rebuild_switch:
            args.append(self.settings.force_rebuild_switch)
        args.extend(s for s in self.settings.dry_run_switches if s not in args)
        return args

    async def _write_trace(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(content)
            logger.debug(f"Wrote dry-run output to {path}")
        except OSError as e:
            raise TraceError(
                f"Failed to write dry-run output: {e}",
                cause=e,
                context=ErrorContext(trace_file=path),
                recoverable=True,
            ) from e

    async def _parse_configuration(
        self, trace: str, clean: bool, cancel: CancellationToken
    ) -> None:
        extractor = CompileUnitExtractor(
            self.options, locator=self.locator, progress=self.progress
        )
        pass_builder = ConfigurationProviderBuilder()
        async for unit in extractor.extract(trace, cancel):
            pass_builder.add(unit)

        self.context.provider.merge_from(pass_builder, clean=clean)
        self.context.provider.log_configuration()
        if self.sink:
            self.sink.update_configuration(
                dict(pass_builder.file_index), list(pass_builder.browse_path), clean=clean
            )
        logger.info(f"Found configuration for {len(pass_builder.file_index)} source files")

    async def _parse_launch_targets(
        self, trace: str, clean: bool, cancel: CancellationToken
    ) -> None:
        extractor = LaunchTargetExtractor(self.options, progress=self.progress)
        found = [target.to_canonical() async for target in extractor.extract(trace, cancel)]

        snapshot = self.context.snapshot
        snapshot.launch_targets[:] = merge_sorted(snapshot.launch_targets, found, clean=clean)
        if found:
            logger.info(f"Found the following launch targets: {';'.join(sorted(set(found)))}")
        else:
            logger.info("No launch configurations have been detected")

        selected = self.context.current_launch_target
        if selected and selected not in snapshot.launch_targets:
            logger.info(f"Current launch target {selected} is no longer present in the available list")
            self.context.current_launch_target = ""

    async def _parse_build_targets(self, clean: bool, cancel: CancellationToken) -> None:
        self.progress.report(ProgressEvent.status("Generating parse content for build targets"))
        trace, _ = await self._obtain_trace(clean, True, cancel)
        extractor = BuildTargetExtractor(self.options, progress=self.progress)
        found = [name async for name in extractor.extract(trace, cancel)]

        snapshot = self.context.snapshot
        snapshot.build_targets[:] = merge_sorted(snapshot.build_targets, found, clean=clean)
        logger.info(f"Found {len(found)} build targets")

    async def _persist(self, _: Any) -> None:
        await self.cache.save(self.context.snapshot)

    async def _clean_cache(self, cancel: CancellationToken) -> None:
        self.cache.delete()
        for path in (self.settings.dry_run_log, self.settings.targets_log):
            if path.is_file():
                logger.info(f"Deleting {path}")
                path.unlink()

    def _kill_outstanding_process(self) -> None:
        pid = self.context.current_pid
        if pid is None:
            logger.info("No make process is running, exiting early from the configure process")
            return
        logger.info(f"Attempting to kill the make process (PID = {pid}) and all its children")
        kill_process_tree(pid)

    def _trace_location(self) -> Path:
        if self.settings.build_log:
            return self.settings.build_log
        return self.settings.dry_run_log
