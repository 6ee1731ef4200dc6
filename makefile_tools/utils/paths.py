#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Path helpers that work on traces produced by a different host platform.
"""

from __future__ import annotations

import os
import posixpath
from typing import Iterable, List, Optional, Sequence


def remove_quotes(value: str) -> str:
    return value.replace('"', "")


def make_full_path(relative: str, current: str, pathmod=posixpath) -> str:
    """Resolve ``relative`` against ``current`` using the given path flavour."""
    relative = remove_quotes(relative.strip())
    if not relative:
        return current
    if pathmod.isabs(relative):
        return pathmod.normpath(relative)
    return pathmod.normpath(pathmod.join(current, relative))


def make_full_paths(paths: Iterable[str], current: str, pathmod=posixpath) -> List[str]:
    return [make_full_path(p, current, pathmod) for p in paths]


class SearchPathLocator:
    """
    Finds the directory holding a tool by walking a search path.

    Defaults to the ``PATH`` environment variable of this process.
    """

    def __init__(
        self,
        search_path: Optional[Sequence[str]] = None,
        extensions: Sequence[str] = ("",),
    ) -> None:
        if search_path is None:
            search_path = os.environ.get("PATH", "").split(os.pathsep)
        self.search_path = [p for p in search_path if p]
        self.extensions = extensions

    def locate(self, tool_name: str) -> Optional[str]:
        for directory in self.search_path:
            for ext in self.extensions:
                candidate = os.path.join(directory, tool_name + ext)
                if os.path.isfile(candidate):
                    return directory
        return None
