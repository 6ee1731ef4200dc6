import pytest

from ..core.models import ParseOptions
from .tools import COMPILER_NAMES, LINKER_NAMES, ToolInvocationMatcher


@pytest.fixture
def posix_matcher():
    return ToolInvocationMatcher(ParseOptions("/work", platform="linux"))


@pytest.fixture
def windows_matcher():
    return ToolInvocationMatcher(ParseOptions("C:\\proj", platform="win32"))


def test_bare_compiler_name_is_tolerated(posix_matcher):
    tool = posix_matcher.match("gcc -c main.c -o main.o", COMPILER_NAMES, "/work")

    assert tool is not None
    assert tool.path_in_trace == ""
    assert tool.full_path == "/work/gcc"
    assert tool.arguments == "-c main.c -o main.o"


def test_existing_path_prefix_is_accepted(posix_matcher, tmp_path):
    compiler = tmp_path / "bin" / "g++"
    compiler.parent.mkdir()
    compiler.write_text("")

    tool = posix_matcher.match(f"{tmp_path}/bin/g++ -c a.cpp", COMPILER_NAMES, "/work")

    assert tool is not None
    assert tool.found
    assert tool.full_path == str(compiler)


def test_tool_name_inside_switch_value_is_rejected(windows_matcher):
    line = "link.exe /out:C:\\out\\cl.exe main.obj"
    assert windows_matcher.match(line, COMPILER_NAMES, "C:\\proj") is None


def test_missing_path_prefix_is_rejected(posix_matcher):
    line = "/nonexistent/toolchain/gcc -c main.c"
    assert posix_matcher.match(line, COMPILER_NAMES, "/work") is None


def test_windows_executable_extension(windows_matcher):
    tool = windows_matcher.match("link.exe a.obj b.obj /out:app.exe", LINKER_NAMES, "C:\\proj")

    assert tool is not None
    assert tool.full_path == "C:\\proj\\link.exe"
    assert tool.arguments == "a.obj b.obj /out:app.exe"


def test_windows_bare_name_gets_extension(windows_matcher):
    tool = windows_matcher.match("cl /c main.cpp", COMPILER_NAMES, "C:\\proj")
    assert tool.full_path == "C:\\proj\\cl.exe"


def test_quoted_invocation(posix_matcher):
    tool = posix_matcher.match('"clang++" -std=c++20 a.cpp', COMPILER_NAMES, "/work")
    assert tool.arguments == "-std=c++20 a.cpp"


def test_non_tool_line(posix_matcher):
    assert posix_matcher.match("echo building", COMPILER_NAMES, "/work") is None
