import pytest

from .switches import RegexSwitchExtractor
from .tools import SOURCE_EXTENSIONS


@pytest.fixture
def switches():
    return RegexSwitchExtractor()


@pytest.mark.parametrize(
    "args,switch,expected",
    [
        ("-I/usr/include -Iinc -I include2", "I", ["/usr/include", "inc", "include2"]),
        ("-DFOO -D BAR=1 /DBAZ", "D", ["FOO", "BAR=1", "BAZ"]),
        ('/I"C:\\Program Files\\inc" /Isrc', "I", ["C:\\Program Files\\inc", "src"]),
        ("-I/usr/include/-Dfoo", "D", []),
    ],
)
def test_repeatable(switches, args, switch, expected):
    assert switches.repeatable(args, switch) == expected


def test_single_last_occurrence_wins(switches):
    assert switches.single("-std=c++11 -O2 -std=c++17", ["std"]) == "c++17"


def test_single_across_spellings(switches):
    assert switches.single("/out:first.exe -o second", ["out", "o"]) == "second"
    assert switches.single("-O2 -Wall", ["out", "o"]) is None


def test_ordered_keeps_interleaving(switches):
    values = switches.ordered("-m32 -march=x86-64 -m64", ["m32", "m64"], ["march"])
    assert values == ["m32", "x86-64", "m64"]


def test_is_present(switches):
    assert switches.is_present("-c main.c -o main.o", ["c"])
    assert not switches.is_present("main.c -o main", ["c"])
    assert switches.is_present("a.obj /DLL /out:x.dll", ["DLL"])


def test_files_by_extension(switches):
    args = 'a.c "my file.cpp" b.o src/x.cxx'
    assert switches.files_by_extension(args, SOURCE_EXTENSIONS) == [
        "a.c",
        "my file.cpp",
        "src/x.cxx",
    ]
