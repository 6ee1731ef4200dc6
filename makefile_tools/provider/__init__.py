"""
Configuration provider state shared with the code-intelligence consumer.
"""

from .builder import (
    SourceFileConfiguration,
    ConfigurationSnapshot,
    ConfigurationProviderBuilder,
    merge_sorted,
)

__all__ = [
    "SourceFileConfiguration",
    "ConfigurationSnapshot",
    "ConfigurationProviderBuilder",
    "merge_sorted",
]
