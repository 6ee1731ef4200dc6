import pytest

from ..core.errors import OperationCancelledError
from ..core.models import ParseOptions
from ..core.progress import CancellationToken
from .preprocess import LINK_MODE, TracePreprocessor


@pytest.fixture
def preprocessor():
    return TracePreprocessor(ParseOptions("/work", platform="linux"))


@pytest.mark.asyncio
async def test_splits_command_lists(preprocessor):
    result = await preprocessor.preprocess("cd src && gcc -c a.c; echo done\r\n")
    assert result.split("\n") == ["cd src", "gcc -c a.c", " echo done", ""]


@pytest.mark.asyncio
async def test_joins_continuations(preprocessor):
    result = await preprocessor.preprocess("gcc -c a.c \\\n    -Iinclude \\\n    -o a.o")
    assert result == "gcc -c a.c     -Iinclude     -o a.o"


@pytest.mark.asyncio
async def test_drops_unexpanded_variables(preprocessor):
    result = await preprocessor.preprocess("CFLAGS = $(OPT)\ngcc -c a.c")
    assert result == "gcc -c a.c"


def test_strip_libtool_compile_mode(preprocessor):
    line = "libtool --mode=compile gcc -c a.c"
    assert preprocessor.strip_libtool_mode(line) == " gcc -c a.c"


def test_strip_libtool_link_mode(preprocessor):
    line = "/bin/sh ../libtool --mode=link gcc -o app a.o"
    assert preprocessor.strip_libtool_mode(line) == " gcc -o app a.o"


def test_ambiguous_libtool_line_keeps_link_marker(preprocessor):
    line = "libtool --mode=compile --mode=link gcc -o app a.c"
    assert preprocessor.strip_libtool_mode(line).endswith(LINK_MODE)


@pytest.mark.asyncio
async def test_windows_inline_link_is_split():
    preprocessor = TracePreprocessor(ParseOptions("C:\\proj", platform="win32"))
    result = await preprocessor.preprocess("cl.exe main.cpp /link /out:app.exe")
    assert result == "cl.exe main.cpp /link \n link.exe /out:app.exe"


@pytest.mark.asyncio
async def test_inline_link_left_alone_off_windows(preprocessor):
    line = "cl.exe main.cpp /link /out:app.exe"
    assert await preprocessor.preprocess(line) == line


@pytest.mark.asyncio
async def test_cancelled_before_start(preprocessor):
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OperationCancelledError):
        await preprocessor.preprocess("gcc -c a.c", token)
