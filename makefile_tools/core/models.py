#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data models for the dry-run trace parser and the configure pipeline.
"""

from __future__ import annotations

import re
import sys
import ntpath
import posixpath
from enum import Enum, StrEnum, auto
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ConfigureResult(Enum):
    """Terminal outcome of a configure pass or one of its subphases."""

    SUCCESS = auto()
    BLOCKED = auto()
    CANCELLED = auto()
    NOT_FOUND = auto()
    OUT_OF_DATE = auto()
    OTHER = auto()

    @property
    def failed(self) -> bool:
        """True for outcomes that should be reported as a failure."""
        return self in (ConfigureResult.NOT_FOUND, ConfigureResult.OTHER)


class Operation(Enum):
    """Operation kinds subject to mutual exclusion."""

    PRE_CONFIGURE = auto()
    CONFIGURE = auto()
    BUILD = auto()


class Language(StrEnum):
    """Source language of a compile unit."""

    C = "c"
    CPP = "cpp"

    @classmethod
    def from_file(cls, file_path: str) -> Optional[Language]:
        """Guess the language from a source file extension."""
        lowered = file_path.lower()
        if lowered.endswith((".cpp", ".cc", ".cxx")):
            return cls.CPP
        if lowered.endswith(".c"):
            return cls.C
        return None


class TargetArchitecture(StrEnum):
    """Target architecture inferred from compiler switches."""

    X86 = "x86"
    X64 = "x64"
    ARM = "arm"
    ARM64 = "arm64"


@dataclass(frozen=True)
class ParseOptions:
    """Inputs shared by every scan over a trace."""

    workspace_root: str
    platform: str = sys.platform
    chunk_size: int = 100
    supports_gnu_standards: bool = True
    supports_arm_modes: bool = True
    platform_sdk_version: Optional[str] = None

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    @property
    def pathmod(self):
        """Path module matching the platform that produced the trace."""
        return ntpath if self.is_windows else posixpath


@dataclass
class ToolInvocation:
    """One recognized invocation of a named tool on a trace line."""

    path_in_trace: str
    full_path: str
    found: bool
    arguments: str


@dataclass
class CompileUnit:
    """Compiler configuration derived from a single compiler invocation."""

    defines: List[str]
    include_paths: List[str]
    forced_includes: List[str]
    standard: Optional[str]
    intellisense_mode: str
    compiler_path: str
    source_files: List[str]
    platform_sdk_version: Optional[str] = None


_WINDOWS_PATH = re.compile(r"^[A-Za-z]:[\\/]|^\\\\")
_CANONICAL = re.compile(r"^(.*)>(.*)\((.*)\)$", re.DOTALL)


def path_module_for(path: str):
    """Pick the path flavour a stored path was written in."""
    return ntpath if _WINDOWS_PATH.match(path) else posixpath


@dataclass
class LaunchTarget:
    """
    A binary the build produces, plus how the build itself runs it.

    Targets known only from the link line carry no arguments and the
    workspace root as working directory.
    """

    binary_path: str
    working_directory: str
    arguments: List[str] = field(default_factory=list)

    def to_canonical(self) -> str:
        """Encode as ``cwd>relative/binary(arg1,arg2)``."""
        pathmod = path_module_for(self.working_directory or self.binary_path)
        binary = self.binary_path
        if self.working_directory and pathmod.isabs(binary):
            binary = pathmod.relpath(binary, self.working_directory)
        return f"{self.working_directory}>{binary}({','.join(self.arguments)})"

    @classmethod
    def from_canonical(cls, value: str) -> Optional[LaunchTarget]:
        """Decode a canonical string, returning None if it is malformed."""
        match = _CANONICAL.match(value)
        if not match:
            return None
        cwd, binary, args = match.groups()
        pathmod = path_module_for(cwd or binary)
        if not pathmod.isabs(binary) and cwd:
            binary = pathmod.normpath(pathmod.join(cwd, binary))
        return cls(
            binary_path=binary,
            working_directory=cwd,
            arguments=args.split(",") if args else [],
        )

    def __str__(self) -> str:
        return self.to_canonical()


@dataclass
class SubphaseResult:
    """Result code and elapsed seconds of one configure subphase."""

    name: str
    code: ConfigureResult
    elapsed_time: float = 0.0

    @property
    def cancelled(self) -> bool:
        return self.code is ConfigureResult.CANCELLED


@dataclass
class ConfigureOutcome:
    """Summary of a configure pass returned to the caller."""

    result: ConfigureResult
    subphases: List[SubphaseResult] = field(default_factory=list)
    elapsed_time: float = 0.0
    loaded_from_cache: bool = False
    recursed: bool = False
    dry_run_exit_code: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.result is ConfigureResult.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.name.lower(),
            "elapsed_time": round(self.elapsed_time, 3),
            "loaded_from_cache": self.loaded_from_cache,
            "recursed": self.recursed,
            "dry_run_exit_code": self.dry_run_exit_code,
            "subphases": [
                {
                    "name": sub.name,
                    "result": sub.code.name.lower(),
                    "elapsed_time": round(sub.elapsed_time, 3),
                }
                for sub in self.subphases
            ],
        }


@dataclass
class CommandResult:
    """Outcome of one external command run."""

    exit_code: Optional[int]
    pid: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    execution_time: float = 0.0
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.cancelled
