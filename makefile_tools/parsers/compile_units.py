"""
Compiler invocation parsing.

Each compiler command found in the trace becomes one or more
:class:`CompileUnit` entries describing how its source files are built.
"""

import re
from typing import AsyncIterator, List, Optional

from loguru import logger

from ..core.interfaces import ToolLocator
from ..core.models import CompileUnit, Language, ParseOptions, TargetArchitecture
from ..core.progress import CancellationToken, ProgressReporter
from ..utils.paths import SearchPathLocator, make_full_paths
from .base import iter_chunks, split_lines
from .directory import DirectoryTracker
from .switches import DEFAULT_EXTRACTOR, SwitchExtractor
from .tools import COMPILER_NAMES, SOURCE_EXTENSIONS, ToolInvocationMatcher

DEFAULT_STANDARDS = {Language.C: "c11", Language.CPP: "c++17"}

_CPP_STANDARDS = [
    (("++2a", "++20", "++latest"), "20"),
    (("++17", "++1z"), "17"),
    (("++14", "++1y"), "14"),
    (("++11", "++0x"), "11"),
    (("++03",), "03"),
    (("++98",), "98"),
]

_C_STANDARDS = [
    (re.compile(r"(c|gnu)(90|89)|iso9899:(1990|199409)"), "89"),
    (re.compile(r"(c|gnu)(99|9x)|iso9899:(1999|199x)"), "99"),
    (re.compile(r"(c|gnu)(11|1x)|iso9899:2011"), "11"),
    (re.compile(r"(c|gnu)(17|18)|iso9899:(2017|2018)"), "18"),
]

_ARCH_ALIASES = {
    "m32": TargetArchitecture.X86,
    "m64": TargetArchitecture.X64,
    "i386": TargetArchitecture.X86,
    "i686": TargetArchitecture.X86,
    "x86": TargetArchitecture.X86,
    "amd64": TargetArchitecture.X64,
    "x86_64": TargetArchitecture.X64,
    "x86-64": TargetArchitecture.X64,
    "aarch64": TargetArchitecture.ARM64,
    "arm64": TargetArchitecture.ARM64,
    "armv8-a": TargetArchitecture.ARM64,
    "arm": TargetArchitecture.ARM,
    "armv8-r": TargetArchitecture.ARM,
    "armv8-m": TargetArchitecture.ARM,
}

_ARM_VERSION = re.compile(r"^armv(\d+)")


def parse_cpp_standard(value: str, allow_gnu: bool) -> Optional[str]:
    prefix = "gnu++" if allow_gnu and value.startswith("gnu") else "c++"
    for suffixes, version in _CPP_STANDARDS:
        if value.endswith(suffixes):
            return prefix + version
    return None


def parse_c_standard(value: str, allow_gnu: bool) -> Optional[str]:
    prefix = "gnu" if allow_gnu and value.startswith("gnu") else "c"
    for pattern, version in _C_STANDARDS:
        if pattern.search(value):
            if version == "18" and not allow_gnu:
                # Consumers without GNU support do not know c18 either
                return "c11"
            return prefix + version
    return None


def resolve_standard(
    value: Optional[str], language: Optional[Language], allow_gnu: bool = True
) -> Optional[str]:
    """Map a ``-std`` value to a canonical standard, or the language default."""
    if not value:
        return DEFAULT_STANDARDS.get(language) if language else None

    if language is Language.CPP:
        standard = parse_cpp_standard(value, allow_gnu)
    elif language is Language.C:
        standard = parse_c_standard(value, allow_gnu)
    else:
        standard = parse_cpp_standard(value, allow_gnu) or parse_c_standard(value, allow_gnu)

    if standard is None:
        logger.warning(f"Unknown standard control flag: {value}")
        return DEFAULT_STANDARDS.get(language) if language else None
    return standard


def target_architecture(
    args: str, switches: SwitchExtractor = DEFAULT_EXTRACTOR
) -> Optional[TargetArchitecture]:
    """Architecture selected by the last architecture switch, if any."""
    arch: Optional[TargetArchitecture] = None
    for value in switches.ordered(args, ["m32", "m64"], ["arch", "march", "target"]):
        value = value.lower()
        candidate = _ARCH_ALIASES.get(value) or _ARCH_ALIASES.get(value.split("-")[0])
        if candidate is None and (match := _ARM_VERSION.match(value)):
            if int(match.group(1)) <= 7:
                candidate = TargetArchitecture.ARM
        if value.startswith("armv8."):
            candidate = TargetArchitecture.ARM64
        if candidate is not None:
            arch = candidate
    return arch


def intellisense_mode(
    compiler_path: str,
    arch: Optional[TargetArchitecture],
    options: ParseOptions,
) -> str:
    """Pick the ``<toolchain>-<arch>`` mode the consumer should emulate."""
    pathmod = options.pathmod
    can_use_arm = options.supports_arm_modes
    name = pathmod.basename(compiler_path or "").lower()

    if name in ("cl.exe", "cl"):
        cl_arch = pathmod.basename(pathmod.dirname(compiler_path)).lower()
        match cl_arch:
            case "arm64":
                return "msvc-arm64" if can_use_arm else "msvc-x64"
            case "arm":
                return "msvc-arm" if can_use_arm else "msvc-x86"
            case "x86":
                return "msvc-x86"
            case _:
                return "msvc-x64"

    if "clang" in name:
        match arch:
            case TargetArchitecture.ARM64:
                return "clang-arm64" if can_use_arm else "clang-x64"
            case TargetArchitecture.ARM:
                return "clang-arm" if can_use_arm else "clang-x86"
            case TargetArchitecture.X86:
                return "clang-x86"
            case _:
                # armclang without an explicit target still builds for arm
                if "armclang" in name:
                    return "clang-arm" if can_use_arm else "clang-x86"
                return "clang-x64"

    # aarch64 toolchains often contain "arm" too, so test it first
    if "aarch64" in name:
        return "gcc-arm64" if can_use_arm else "gcc-x64"
    if "arm" in name:
        return "gcc-arm" if can_use_arm else "gcc-x86"
    if "gcc" in name or "g++" in name:
        return "gcc-x86" if arch is TargetArchitecture.X86 else "gcc-x64"

    if options.platform == "win32":
        return "msvc-x64"
    if options.platform == "darwin":
        return "clang-x64"
    return "gcc-x64"


class CompileUnitExtractor:
    """Finds compiler invocations and turns them into compile units."""

    def __init__(
        self,
        options: ParseOptions,
        *,
        matcher: Optional[ToolInvocationMatcher] = None,
        switches: SwitchExtractor = DEFAULT_EXTRACTOR,
        locator: Optional[ToolLocator] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        self.options = options
        self.pathmod = options.pathmod
        self.matcher = matcher or ToolInvocationMatcher(options)
        self.switches = switches
        self.locator = locator or SearchPathLocator()
        self.progress = progress

    async def extract(
        self, trace: str, cancel: Optional[CancellationToken] = None
    ) -> AsyncIterator[CompileUnit]:
        cancel = cancel or CancellationToken()
        tracker = DirectoryTracker(self.options.workspace_root, self.pathmod)

        async for chunk in iter_chunks(
            split_lines(trace),
            self.options.chunk_size,
            cancel,
            self.progress,
            "Parsing for IntelliSense",
        ):
            found: List[CompileUnit] = []
            for line in chunk:
                tracker.apply(line)
                found.extend(self.parse_line(line, tracker.current))
            cancel.raise_if_cancelled("parsing for IntelliSense")
            for unit in found:
                yield unit

    def parse_line(self, line: str, current_dir: str) -> List[CompileUnit]:
        """Compile units produced by one trace line (empty if not a compiler call)."""
        tool = self.matcher.match(line, COMPILER_NAMES, current_dir)
        if tool is None:
            return []
        logger.debug(f"Found compiler command: {line}")

        args = tool.arguments
        compiler_path = tool.full_path
        if not tool.found:
            base_name = self.pathmod.basename(compiler_path)
            directory = self.locator.locate(base_name)
            compiler_path = self.pathmod.join(directory, base_name) if directory else base_name

        includes = make_full_paths(self.switches.repeatable(args, "I"), current_dir, self.pathmod)
        forced = make_full_paths(self.switches.repeatable(args, "FI"), current_dir, self.pathmod)
        defines = self.switches.repeatable(args, "D")
        mode = intellisense_mode(compiler_path, target_architecture(args, self.switches), self.options)

        files = make_full_paths(
            self.switches.files_by_extension(args, SOURCE_EXTENSIONS), current_dir, self.pathmod
        )
        if not files:
            return []

        languages = {Language.from_file(f) for f in files}
        language = languages.pop() if len(languages) == 1 else None
        # /TC and /TP apply to every file; the last one given wins
        forced_language = self.switches.ordered(args, ["TC", "TP"], [])
        if forced_language:
            language = Language.C if forced_language[-1] == "TC" else Language.CPP

        std = self.switches.single(args, ["std"])
        sdk = self.options.platform_sdk_version if self.options.is_windows else None

        def make_unit(sources: List[str], lang: Optional[Language]) -> CompileUnit:
            return CompileUnit(
                defines=defines,
                include_paths=includes,
                forced_includes=forced,
                standard=resolve_standard(std, lang, self.options.supports_gnu_standards),
                intellisense_mode=mode,
                compiler_path=compiler_path,
                source_files=sources,
                platform_sdk_version=sdk,
            )

        if language is not None:
            return [make_unit(files, language)]
        # Mixed C and C++ sources get one unit each so defaults follow the language
        return [make_unit([f], Language.from_file(f)) for f in files]
