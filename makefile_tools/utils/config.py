#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configure settings and their loading from JSON or TOML files.
"""

from __future__ import annotations

import os
import sys
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.errors import ConfigurationError, ErrorContext
from ..core.models import ParseOptions


class ConfigureSettings(BaseModel):
    """Settings controlling how the dry-run trace is obtained and parsed."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    workspace_root: Path = Field(default_factory=Path.cwd)
    make_command: str = Field(default="make", min_length=1)
    make_args: List[str] = Field(default_factory=list)
    build_log: Optional[Path] = Field(
        default=None, description="Pre-generated trace used instead of a dry-run"
    )
    cache_dir: Optional[Path] = None
    dry_run_switch: str = "--dry-run"
    dry_run_switches: List[str] = Field(default_factory=lambda: ["--always-make", "--keep-going"])
    force_rebuild_switch: str = "--always-make"
    database_switch: str = "--print-data-base"
    chunk_size: int = Field(default=100, ge=1)
    stall_timeout: float = Field(default=30.0, gt=0)
    supports_gnu_standards: bool = True
    supports_arm_modes: bool = True
    platform: str = Field(default_factory=lambda: sys.platform)
    pre_configure_script: Optional[Path] = None
    always_pre_configure: bool = False
    configure_after_command: bool = True

    @field_validator("workspace_root")
    @classmethod
    def resolve_workspace(cls, v: Path) -> Path:
        return Path(v).expanduser().resolve()

    @property
    def resolved_cache_dir(self) -> Path:
        return self.cache_dir or self.workspace_root / ".makefile_tools"

    @property
    def cache_file(self) -> Path:
        return self.resolved_cache_dir / "configuration_cache.json"

    @property
    def dry_run_log(self) -> Path:
        return self.resolved_cache_dir / "dryrun.log"

    @property
    def targets_log(self) -> Path:
        return self.resolved_cache_dir / "targets.log"

    def parse_options(self) -> ParseOptions:
        return ParseOptions(
            workspace_root=str(self.workspace_root),
            platform=self.platform,
            chunk_size=self.chunk_size,
            supports_gnu_standards=self.supports_gnu_standards,
            supports_arm_modes=self.supports_arm_modes,
            platform_sdk_version=(
                os.environ.get("WindowsSDKVersion") if self.platform == "win32" else None
            ),
        )


class SettingsLoader:
    """Loads :class:`ConfigureSettings` from JSON or TOML files."""

    _SUPPORTED_EXTENSIONS = {
        ".json": "json",
        ".toml": "toml",
    }

    @classmethod
    def load_from_file(cls, file_path: Union[Path, str], **overrides: Any) -> ConfigureSettings:
        """
        Load settings from a file.

        Args:
            file_path: Path to the settings file.
            **overrides: Values that take precedence over the file content.

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid.
        """
        config_path = Path(file_path)

        if not config_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                config_file=config_path,
                context=ErrorContext(working_directory=config_path.parent),
            )

        suffix = config_path.suffix.lower()
        if suffix not in cls._SUPPORTED_EXTENSIONS:
            supported = ", ".join(cls._SUPPORTED_EXTENSIONS)
            raise ConfigurationError(
                f"Unsupported configuration file format: {suffix}. Supported formats: {supported}",
                config_file=config_path,
            )

        try:
            content = config_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read configuration file: {e}",
                config_file=config_path,
                cause=e,
            ) from e

        logger.debug(f"Loading {suffix[1:].upper()} configuration from {config_path}")
        match cls._SUPPORTED_EXTENSIONS[suffix]:
            case "json":
                data = cls._parse_json(content, config_path)
            case "toml":
                data = cls._parse_toml(content, config_path)
            case other:
                raise ConfigurationError(
                    f"Internal error: unhandled format type {other}",
                    config_file=config_path,
                )

        # A relative workspace root is relative to the settings file
        root = Path(data.get("workspace_root", "."))
        if not root.is_absolute():
            root = config_path.parent / root
        data["workspace_root"] = str(root)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data, config_path)

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], source_file: Optional[Path] = None
    ) -> ConfigureSettings:
        try:
            return ConfigureSettings.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            option = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                config_file=source_file,
                invalid_option=option or None,
                cause=e,
            ) from e

    @staticmethod
    def _parse_json(content: str, source_file: Path) -> Dict[str, Any]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON configuration: {e}",
                config_file=source_file,
                context=ErrorContext(additional_info={"line": e.lineno, "column": e.colno}),
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "JSON configuration must be an object/dictionary",
                config_file=source_file,
            )
        return data

    @staticmethod
    def _parse_toml(content: str, source_file: Path) -> Dict[str, Any]:
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f"Invalid TOML configuration: {e}",
                config_file=source_file,
            ) from e
        # Allow settings to live under a [makefile_tools] table
        return dict(data.get("makefile_tools", data))
