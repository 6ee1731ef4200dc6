#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception hierarchy for the trace parser and configure pipeline.
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, field

from loguru import logger


@dataclass(frozen=True)
class ErrorContext:
    """Context information attached to pipeline errors."""

    command: Optional[str] = None
    exit_code: Optional[int] = None
    working_directory: Optional[Path] = None
    trace_file: Optional[Path] = None
    subphase: Optional[str] = None
    additional_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for structured logging."""
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "working_directory": (
                str(self.working_directory) if self.working_directory else None
            ),
            "trace_file": str(self.trace_file) if self.trace_file else None,
            "subphase": self.subphase,
            "additional_info": self.additional_info,
        }


class MakefileToolsError(Exception):
    """
    Base exception for makefile_tools with structured context.

    Every instance is logged once at construction time together with its
    context so failures deep inside a subphase still leave a trail.
    """

    log_level = "ERROR"

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable
        self.traceback_str = traceback.format_exc() if cause else None

        logger.bind(
            error_context=self.context.to_dict(),
            recoverable=self.recoverable,
            original_cause=str(cause) if cause else None,
        ).log(self.log_level, f"{self.__class__.__name__}: {message}")

    def __str__(self) -> str:
        base_msg = super().__str__()

        if self.context.command:
            base_msg += f"\nCommand: {self.context.command}"

        if self.context.exit_code is not None:
            base_msg += f"\nExit Code: {self.context.exit_code}"

        if self.context.trace_file:
            base_msg += f"\nTrace: {self.context.trace_file}"

        if self.cause:
            base_msg += f"\nCaused by: {self.cause}"

        return base_msg


class ConfigurationError(MakefileToolsError):
    """Raised when a settings file cannot be loaded or validated."""

    def __init__(
        self,
        message: str,
        *,
        config_file: Optional[Union[str, Path]] = None,
        invalid_option: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        additional_info = kwargs.pop("additional_info", {})
        if config_file:
            additional_info["config_file"] = str(config_file)
        if invalid_option:
            additional_info["invalid_option"] = invalid_option

        context = kwargs.get("context") or ErrorContext()
        context.additional_info.update(additional_info)
        kwargs["context"] = context

        super().__init__(message, **kwargs)


class TraceError(MakefileToolsError):
    """Raised when a trace cannot be read or written."""


class ToolNotFoundError(MakefileToolsError):
    """Raised when the build tool itself cannot be started."""

    def __init__(
        self, message: str, *, tool: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context") or ErrorContext()
        if tool:
            context.additional_info["tool"] = tool
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class OperationCancelledError(MakefileToolsError):
    """Raised at a chunk boundary once cancellation has been requested."""

    log_level = "INFO"

    def __init__(self, message: str = "Operation cancelled", **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class CacheError(MakefileToolsError):
    """Raised when the configuration cache cannot be serialized."""


def handle_configure_error(
    func_name: str,
    error: Exception,
    *,
    context: Optional[ErrorContext] = None,
    recoverable: bool = False,
) -> MakefileToolsError:
    """
    Convert generic exceptions to MakefileToolsError with context.

    Args:
        func_name: Name of the function where error occurred
        error: The original exception
        context: Error context information
        recoverable: Whether the error is recoverable

    Returns:
        MakefileToolsError subclass matching the original exception
    """
    if isinstance(error, MakefileToolsError):
        return error

    message = f"Error in {func_name}: {error}"

    if isinstance(error, FileNotFoundError):
        return ToolNotFoundError(
            message,
            context=context,
            cause=error,
            recoverable=recoverable,
            tool=str(error.filename) if error.filename else None,
        )
    elif isinstance(error, PermissionError):
        return TraceError(
            message, context=context, cause=error, recoverable=recoverable
        )
    else:
        return MakefileToolsError(
            message, context=context, cause=error, recoverable=recoverable
        )
