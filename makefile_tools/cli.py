#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for makefile_tools.
"""

from __future__ import annotations

import sys
import json
import signal
import asyncio
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.errors import ConfigurationError, MakefileToolsError
from .core.models import ConfigureOutcome, ConfigureResult
from .core.progress import CancellationToken
from .launcher import Launcher
from .pipeline.configure import ConfigurePipeline
from .pipeline.context import PipelineContext
from .pipeline.operations import BuildOperations
from .utils.config import ConfigureSettings, SettingsLoader

EXIT_CODES = {
    ConfigureResult.SUCCESS: 0,
    ConfigureResult.OUT_OF_DATE: 0,
    ConfigureResult.OTHER: 1,
    ConfigureResult.NOT_FOUND: 3,
    ConfigureResult.BLOCKED: 4,
    ConfigureResult.CANCELLED: 130,
}


def setup_logging(args: argparse.Namespace) -> None:
    """Set up console and optional file logging."""
    logger.remove()

    log_level = args.log_level
    if args.verbose and log_level == "INFO":
        log_level = "DEBUG"

    if log_level in ["DEBUG", "TRACE"]:
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        log_format = (
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<level>{message}</level>"
        )

    logger.add(sys.stderr, level=log_level, format=log_format, colorize=True)

    if args.log_file:
        logger.add(
            args.log_file,
            level=log_level,
            format=log_format,
            rotation="10 MB",
            retention=3,
            compression="gz",
        )

    # Subphase timings end up in a separate file when debugging
    if log_level in ["DEBUG", "TRACE"] and args.log_file:
        logger.add(
            Path(args.log_file).with_name("configure_performance.log"),
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}",
            filter=lambda record: "execution_time" in record["extra"],
            rotation="5 MB",
            retention=2,
        )

    logger.debug(f"Logging initialized at {log_level} level")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="makefile_tools",
        description="Derive per-file compiler configuration and targets from a make dry-run",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog="Examples:\n"
               "  %(prog)s configure --workspace . --clean\n"
               "  %(prog)s --config makefile_tools.toml targets\n"
               "  %(prog)s launch --debug",
    )
    parser.add_argument("--version", action="version",
                        version=f"makefile_tools v{__version__}")

    project_group = parser.add_argument_group("Project")
    project_group.add_argument("--config", type=Path,
                               help="Load settings from a JSON or TOML file")
    project_group.add_argument("--workspace", type=Path,
                               help="Workspace root (defaults to the current directory)")
    project_group.add_argument("--make", dest="make_command",
                               help="Make executable to run")
    project_group.add_argument("--make-arg", dest="make_args", action="append",
                               help="Extra argument passed to make (repeatable)")
    project_group.add_argument("--build-log", type=Path,
                               help="Parse this build log instead of running a dry-run")
    project_group.add_argument("--target", default="",
                               help="Build target used for the dry-run and the build")

    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument("--verbose", action="store_true",
                               help="Enable verbose output")
    logging_group.add_argument("--log_level",
                               choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
                               default="INFO",
                               help="Set the logging level")
    logging_group.add_argument("--log_file", type=Path,
                               help="Also log to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    configure = subparsers.add_parser("configure", help="Run a configure pass")
    configure.add_argument("--clean", action="store_true",
                           help="Discard cached state and force a full rebuild trace")
    configure.add_argument("--no-update-targets", dest="update_targets", action="store_false",
                           help="Reuse cached build targets when possible")
    configure.add_argument("--output", type=Path,
                           help="Write the per-file configuration to this JSON file")
    configure.add_argument("--json", action="store_true",
                           help="Print the outcome as JSON instead of a table")

    subparsers.add_parser("targets", help="List build and launch targets")

    launch = subparsers.add_parser("launch", help="Describe how to run or debug a launch target")
    launch.add_argument("--launch-target", help="Canonical launch target string")
    launch.add_argument("--debug", action="store_true",
                        help="Print a debugger launch configuration")

    build = subparsers.add_parser("build", help="Build the current target")
    build.add_argument("--clean", action="store_true", help="Clean before building")

    return parser


def load_settings(args: argparse.Namespace) -> ConfigureSettings:
    overrides: Dict[str, Any] = {
        "workspace_root": args.workspace,
        "make_command": args.make_command,
        "make_args": args.make_args,
        "build_log": args.build_log,
    }
    if args.config:
        return SettingsLoader.load_from_file(args.config, **overrides)
    return SettingsLoader.from_dict({k: v for k, v in overrides.items() if v is not None})


def print_outcome(console: Console, outcome: ConfigureOutcome) -> None:
    table = Table(title="Configure", show_header=True)
    table.add_column("Subphase", style="cyan")
    table.add_column("Result")
    table.add_column("Elapsed (s)", justify="right", style="yellow")

    for sub in outcome.subphases:
        color = "green" if sub.code is ConfigureResult.SUCCESS else "red"
        table.add_row(sub.name, f"[{color}]{sub.code.name.lower()}[/{color}]", f"{sub.elapsed_time:.3f}")

    console.print(table)
    console.print(
        f"Result: [bold]{outcome.result.name.lower()}[/bold] in {outcome.elapsed_time:.2f}s"
        + (" (loaded from cache)" if outcome.loaded_from_cache else "")
    )


def print_targets(console: Console, context: PipelineContext) -> None:
    for title, values in (("Build targets", context.build_targets),
                          ("Launch targets", context.launch_targets)):
        table = Table(title=f"{title} ({len(values)})", show_header=False)
        table.add_column(title, style="cyan")
        for value in values:
            table.add_row(value)
        console.print(table)


def install_cancel_handler(cancel: CancellationToken) -> None:
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel.cancel)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers are not supported here, Ctrl+C interrupts immediately")


async def amain(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args)
    console = Console()

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        logger.error(f"Failed to load configuration: {e}")
        return 2

    context = PipelineContext(current_target=args.target)
    pipeline = ConfigurePipeline(settings, context)
    cancel = CancellationToken()
    install_cancel_handler(cancel)

    try:
        match args.command:
            case "configure":
                outcome = await pipeline.configure(
                    clean=args.clean, update_targets=args.update_targets, cancel=cancel
                )
                if args.output:
                    index = {
                        path: config.model_dump(by_alias=True)
                        for path, config in context.snapshot.file_index.items()
                    }
                    args.output.write_text(json.dumps(index, indent=2), encoding="utf-8")
                    logger.info(f"Wrote configuration for {len(index)} files to {args.output}")
                if args.json:
                    print(json.dumps(outcome.to_dict(), indent=2))
                else:
                    print_outcome(console, outcome)
                return EXIT_CODES[outcome.result]

            case "targets":
                outcome = await pipeline.configure(update_targets=False, cancel=cancel)
                print_targets(console, context)
                return EXIT_CODES[outcome.result]

            case "launch":
                outcome = await pipeline.configure(update_targets=False, cancel=cancel)
                if outcome.result.failed and not context.launch_targets:
                    return EXIT_CODES[outcome.result]
                launcher = Launcher(context, settings.platform)
                if args.debug:
                    config = launcher.debug_configuration(args.launch_target)
                    if config is None:
                        return 1
                    print(json.dumps(config, indent=2))
                else:
                    command = launcher.run_command(args.launch_target)
                    if command is None:
                        return 1
                    print(command)
                return 0

            case "build":
                result = await BuildOperations(pipeline).build_target(
                    args.target, clean=args.clean, cancel=cancel
                )
                return EXIT_CODES[result]

    except MakefileToolsError as e:
        logger.error(f"{args.command} failed: {e}")
        if args.verbose and e.context:
            logger.debug(f"Error context: {e.context.to_dict()}")
            if e.traceback_str:
                logger.debug(f"Caused by:\n{e.traceback_str}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error occurred: {e}")
        return 1
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run makefile_tools from the command line."""
    try:
        return asyncio.run(amain(argv))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
