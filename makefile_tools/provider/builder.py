#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Per-file configuration index and browse path accumulated from compile units.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..core.models import CompileUnit, path_module_for


class SourceFileConfiguration(BaseModel):
    """Compiler configuration the consumer applies to one source file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    defines: List[str] = Field(default_factory=list)
    include_path: List[str] = Field(default_factory=list, alias="includePath")
    forced_include: List[str] = Field(default_factory=list, alias="forcedInclude")
    standard: Optional[str] = None
    intellisense_mode: str = Field(default="", alias="intelliSenseMode")
    compiler_path: str = Field(default="", alias="compilerPath")
    windows_sdk_version: Optional[str] = Field(default=None, alias="windowsSdkVersion")

    @classmethod
    def from_unit(cls, unit: CompileUnit) -> SourceFileConfiguration:
        return cls(
            defines=list(unit.defines),
            include_path=list(unit.include_paths),
            forced_include=list(unit.forced_includes),
            standard=unit.standard,
            intellisense_mode=unit.intellisense_mode,
            compiler_path=unit.compiler_path,
            windows_sdk_version=unit.platform_sdk_version,
        )


@dataclass
class ConfigurationSnapshot:
    """Everything one configure pass derives from the trace."""

    file_index: Dict[str, SourceFileConfiguration] = field(default_factory=dict)
    browse_path: List[str] = field(default_factory=list)
    build_targets: List[str] = field(default_factory=list)
    launch_targets: List[str] = field(default_factory=list)

    def copy(self) -> ConfigurationSnapshot:
        return ConfigurationSnapshot(
            file_index=dict(self.file_index),
            browse_path=list(self.browse_path),
            build_targets=list(self.build_targets),
            launch_targets=list(self.launch_targets),
        )

    def clear(self) -> None:
        self.file_index.clear()
        self.browse_path.clear()
        self.build_targets.clear()
        self.launch_targets.clear()


def merge_sorted(existing: Iterable[str], new: Iterable[str], *, clean: bool) -> List[str]:
    """Sorted, duplicate-free list of ``new`` (clean) or ``existing | new``."""
    values = set(new) if clean else set(existing) | set(new)
    return sorted(values)


class ConfigurationProviderBuilder:
    """
    Accumulates compile units into a file index and a browse path.

    Replaying every unit applied since the last :meth:`reset`, in order and
    last-write-wins per file, always reproduces the current state.
    """

    def __init__(self, snapshot: Optional[ConfigurationSnapshot] = None):
        self.snapshot = snapshot or ConfigurationSnapshot()
        self._browse_seen = set(self.snapshot.browse_path)

    @property
    def file_index(self) -> Dict[str, SourceFileConfiguration]:
        return self.snapshot.file_index

    @property
    def browse_path(self) -> List[str]:
        return self.snapshot.browse_path

    def reset(self) -> None:
        self.snapshot.file_index.clear()
        self.snapshot.browse_path.clear()
        self._browse_seen.clear()

    def add(self, unit: CompileUnit) -> None:
        config = SourceFileConfiguration.from_unit(unit)
        for source in unit.source_files:
            self.file_index[source] = config

        pathmod = path_module_for(unit.source_files[0]) if unit.source_files else posixpath
        directories = list(unit.include_paths)
        directories.extend(pathmod.dirname(f) for f in unit.forced_includes)
        directories.extend(pathmod.dirname(f) for f in unit.source_files)
        for directory in directories:
            self._add_browse_path(directory)

    def apply(self, units: Iterable[CompileUnit], *, clean: bool) -> None:
        """Replace (clean) or merge (incremental) the given units."""
        if clean:
            self.reset()
        count = 0
        for unit in units:
            self.add(unit)
            count += 1
        logger.debug(
            f"Applied {count} compile units ({'replace' if clean else 'merge'}), "
            f"{len(self.file_index)} files indexed"
        )

    def merge_from(self, other: ConfigurationProviderBuilder, *, clean: bool) -> None:
        """Fold the state of a pass builder into this one."""
        if clean:
            self.reset()
        self.file_index.update(other.file_index)
        for directory in other.browse_path:
            self._add_browse_path(directory)

    def _add_browse_path(self, directory: str) -> None:
        if directory and directory not in self._browse_seen:
            self._browse_seen.add(directory)
            self.browse_path.append(directory)

    def log_configuration(self) -> None:
        """Dump the index to the debug log, one file per entry."""
        logger.debug(f"Browse path: {';'.join(self.browse_path)}")
        for source, config in self.file_index.items():
            logger.debug(
                f"{source}: std={config.standard} mode={config.intellisense_mode} "
                f"compiler={config.compiler_path} "
                f"includes={';'.join(config.include_path)} "
                f"defines={';'.join(config.defines)}"
            )
