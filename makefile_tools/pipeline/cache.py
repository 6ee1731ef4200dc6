#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Persisted configuration cache.
"""

from __future__ import annotations

import os
import json
from pathlib import Path
from typing import List, Optional, Tuple, Union

import aiofiles
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import CacheError, ErrorContext
from ..provider.builder import ConfigurationSnapshot, SourceFileConfiguration


class CacheDocument(BaseModel):
    """On-disk layout of the configuration cache."""

    model_config = ConfigDict(populate_by_name=True)

    build_targets: List[str] = Field(default_factory=list, alias="buildTargets")
    launch_targets: List[str] = Field(default_factory=list, alias="launchTargets")
    file_index: List[Tuple[str, SourceFileConfiguration]] = Field(
        default_factory=list, alias="fileIndex"
    )
    browse_path: List[str] = Field(default_factory=list, alias="browsePath")

    @classmethod
    def from_snapshot(cls, snapshot: ConfigurationSnapshot) -> CacheDocument:
        return cls(
            build_targets=list(snapshot.build_targets),
            launch_targets=list(snapshot.launch_targets),
            file_index=list(snapshot.file_index.items()),
            browse_path=list(snapshot.browse_path),
        )

    def to_snapshot(self) -> ConfigurationSnapshot:
        return ConfigurationSnapshot(
            file_index=dict(self.file_index),
            browse_path=list(self.browse_path),
            build_targets=list(self.build_targets),
            launch_targets=list(self.launch_targets),
        )


class ConfigurationCache:
    """Reads and atomically writes the configuration cache file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    async def load(self) -> Optional[ConfigurationSnapshot]:
        """Load the cache; a missing or unreadable cache yields None."""
        if not self.exists():
            logger.debug(f"No configuration cache at {self.path}")
            return None

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
            document = CacheDocument.model_validate(json.loads(content))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load configuration cache {self.path}: {e}")
            return None

        logger.debug(f"Loaded configuration cache from {self.path}")
        return document.to_snapshot()

    async def save(self, snapshot: ConfigurationSnapshot) -> None:
        """Write the cache through a temporary file and an atomic rename."""
        document = CacheDocument.from_snapshot(snapshot)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps(
                document.model_dump(mode="json", by_alias=True),
                indent=2,
                ensure_ascii=False,
            )
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(content)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError) as e:
            raise CacheError(
                f"Failed to save configuration cache: {e}",
                cause=e,
                context=ErrorContext(trace_file=self.path),
            ) from e
        logger.debug(f"Saved configuration cache to {self.path}")

    def delete(self) -> None:
        if self.exists():
            logger.info(f"Deleting the configuration cache: {self.path}")
            self.path.unlink()
