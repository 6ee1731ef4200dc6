"""
Utility helpers for makefile_tools.
"""

from .config import ConfigureSettings, SettingsLoader
from .paths import SearchPathLocator, make_full_path, make_full_paths, remove_quotes

__all__ = [
    "ConfigureSettings",
    "SettingsLoader",
    "SearchPathLocator",
    "make_full_path",
    "make_full_paths",
    "remove_quotes",
]
