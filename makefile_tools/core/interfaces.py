"""
Collaborator interfaces.

The pipeline talks to the outside world only through these protocols:
a command runner for the build tool, a sink for per-file compiler
configuration and a locator for tools invoked without a path.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Protocol, Sequence
)

from .models import CommandResult

if TYPE_CHECKING:
    from ..provider.builder import SourceFileConfiguration

OutputCallback = Callable[[str], None]


class CommandRunner(Protocol):
    """Runs an external command and streams its output."""

    async def run(
        self,
        command: str,
        args: Sequence[str],
        cwd: str,
        on_stdout: Optional[OutputCallback] = None,
        on_stderr: Optional[OutputCallback] = None,
        env: Optional[Mapping[str, str]] = None,
        on_spawn: Optional[Callable[[int], None]] = None,
    ) -> CommandResult:
        """Run the command; ``on_spawn`` receives the OS process id."""
        ...


class ConfigurationSink(Protocol):
    """Consumer of per-file compiler configuration."""

    def update_configuration(
        self,
        file_index: Dict[str, SourceFileConfiguration],
        browse_path: List[str],
        *,
        clean: bool,
    ) -> None:
        """Receive a replace (clean) or merge (incremental) update."""
        ...


class ToolLocator(Protocol):
    """Looks up a bare tool name in a search path."""

    def locate(self, tool_name: str) -> Optional[str]:
        """Return the directory containing the tool, or None."""
        ...
