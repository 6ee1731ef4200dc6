"""
Launch target discovery.

Pass one collects the binaries produced by link (and, for cl, compile)
commands. Pass two looks for lines that run one of those binaries to
learn its working directory and arguments.
"""

from typing import AsyncIterator, List, Optional

from loguru import logger

from ..core.models import LaunchTarget, ParseOptions
from ..core.progress import CancellationToken, ProgressReporter
from ..utils.paths import make_full_path
from .base import iter_chunks, split_lines
from .directory import DirectoryTracker
from .switches import DEFAULT_EXTRACTOR, SwitchExtractor
from .tools import COMPILER_NAMES, LINKER_NAMES, SOURCE_EXTENSIONS, ToolInvocationMatcher

REDIRECTIONS = frozenset({">", "1>", "2>", "|"})


def filter_binary_args(args: List[str]) -> List[str]:
    """Drop shell redirections and everything after them."""
    kept = []
    for arg in args:
        if arg in REDIRECTIONS:
            break
        kept.append(arg)
    return kept


class LaunchTargetExtractor:
    """Two pass scanner producing :class:`LaunchTarget` entries."""

    def __init__(
        self,
        options: ParseOptions,
        *,
        matcher: Optional[ToolInvocationMatcher] = None,
        switches: SwitchExtractor = DEFAULT_EXTRACTOR,
        progress: Optional[ProgressReporter] = None,
    ):
        self.options = options
        self.pathmod = options.pathmod
        self.matcher = matcher or ToolInvocationMatcher(options)
        self.switches = switches
        self.progress = progress

    async def extract(
        self, trace: str, cancel: Optional[CancellationToken] = None
    ) -> AsyncIterator[LaunchTarget]:
        cancel = cancel or CancellationToken()
        lines = split_lines(trace)
        root = self.options.workspace_root
        binaries: List[str] = []

        tracker = DirectoryTracker(root, self.pathmod)
        async for chunk in iter_chunks(
            lines, self.options.chunk_size, cancel, self.progress,
            "Parsing for launch targets (inspecting link commands)",
        ):
            found: List[LaunchTarget] = []
            for line in chunk:
                tracker.apply(line)
                binary = self.binary_from_line(line, tracker.current)
                if binary:
                    binaries.append(binary)
                    found.append(LaunchTarget(binary, root, []))
            cancel.raise_if_cancelled("parsing for launch targets")
            for target in found:
                yield target

        if not binaries:
            logger.debug("No binaries are built, skipping the invocation scan")
            return

        names: List[str] = []
        for binary in binaries:
            name = self.pathmod.splitext(self.pathmod.basename(binary))[0]
            if name not in names:
                names.append(name)

        tracker.reset()
        async for chunk in iter_chunks(
            lines, self.options.chunk_size, cancel, self.progress,
            "Parsing for launch targets (inspecting built binary invocations)",
        ):
            found = []
            for line in chunk:
                tracker.apply(line)
                tool = self.matcher.match(line, names, tracker.current)
                if tool is None:
                    continue
                logger.debug(f"Found binary execution command: {line}")
                found.append(
                    LaunchTarget(
                        binary_path=tool.full_path,
                        working_directory=tracker.current,
                        arguments=filter_binary_args(tool.arguments.split()),
                    )
                )
            cancel.raise_if_cancelled("parsing for launch targets")
            for target in found:
                yield target

    def binary_from_line(self, line: str, current_dir: str) -> Optional[str]:
        """Full path of the binary a line produces, if it produces one."""
        binary = self.linker_output(line, current_dir)
        if binary is None and self.options.is_windows:
            binary = self.compiler_output(line, current_dir)
        return binary

    def compiler_output(self, line: str, current_dir: str) -> Optional[str]:
        tool = self.matcher.match(line, COMPILER_NAMES, current_dir)
        if tool is None:
            return None
        name = self.pathmod.splitext(self.pathmod.basename(tool.full_path))[0].lower()
        if name != "cl":
            return None
        args = tool.arguments
        if self.switches.is_present(args, ["c", "P", "E", "EP", "link"]):
            return None

        binary = self.switches.single(args, ["Fe"])
        if binary is None and (obj := self.switches.single(args, ["Fo"])):
            binary = self._stem(obj) + ".exe"
            logger.debug(f"No /Fe given, assuming {binary} from /Fo")
        if binary is None:
            sources = self.switches.files_by_extension(args, SOURCE_EXTENSIONS)
            if sources:
                binary = self._stem(sources[0]) + ".exe"
                logger.debug(f"No /Fe given, assuming {binary} from the first source")
        return make_full_path(binary, current_dir, self.pathmod) if binary else None

    def linker_output(self, line: str, current_dir: str) -> Optional[str]:
        tool = self.matcher.match(line, LINKER_NAMES, current_dir)
        if tool is None:
            return None
        args = tool.arguments
        # Libraries are not launchable; -c/-E/-S/-r/-Ur stop before an executable
        if self.switches.is_present(args, ["dll", "lib", "shared"]):
            return None
        if self.switches.is_present(args, ["c", "E", "S", "r", "Ur", "mode=link"]):
            return None

        binary = self.switches.single(args, ["out", "o"])
        if binary is None:
            tool_name = self.pathmod.basename(tool.full_path).lower()
            if self.options.is_windows and tool_name.startswith("link"):
                objects = self.switches.files_by_extension(args, ["obj", "lib"])
                if not objects:
                    return None
                binary = self._stem(objects[0]) + ".exe"
            else:
                binary = "a.out"
            logger.debug(f"Link command names no output, assuming {binary}")
        return make_full_path(binary, current_dir, self.pathmod)

    def _stem(self, file_path: str) -> str:
        return self.pathmod.splitext(self.pathmod.basename(file_path))[0]
