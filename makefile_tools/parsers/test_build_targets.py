import pytest

from ..core.models import ParseOptions
from .build_targets import BuildTargetExtractor

DATABASE_DUMP = """\
# GNU Make 4.3
# Variables

CC = cc

# Files

foo: bar.o
#  Implicit rule search has not been done.

# Not a target:
baz:
#  Implicit rule search has not been done.

.PHONY: all clean

all: foo
clean:

foo: bar.o

install:: all

# files hash-table stats:
# Finished Make data base on Mon Jan  1 00:00:00 2024
"""


@pytest.fixture
def extractor():
    return BuildTargetExtractor(ParseOptions("/work", platform="linux"))


@pytest.mark.asyncio
async def test_not_a_target_is_excluded():
    dump = "# Files\nfoo: bar.o\n# Not a target: baz\nbaz:\n# Finished Make data base\n"
    extractor = BuildTargetExtractor(ParseOptions("/work"))

    assert [t async for t in extractor.extract(dump)] == ["foo"]


@pytest.mark.asyncio
async def test_targets_in_order_without_duplicates(extractor):
    targets = [t async for t in extractor.extract(DATABASE_DUMP)]
    assert targets == ["foo", "all", "clean", "install"]


@pytest.mark.asyncio
async def test_lines_outside_files_section_are_ignored(extractor):
    dump = "outside: x\n# Files\ninside: y\n# Finished Make data base\nafter: z\n"
    assert [t async for t in extractor.extract(dump)] == ["inside"]


@pytest.mark.asyncio
async def test_no_files_section(extractor):
    assert [t async for t in extractor.extract("make: *** No targets.  Stop.")] == []


@pytest.mark.parametrize(
    "line,previous,expected",
    [
        ("foo: bar.o", "", "foo"),
        ("install:: all", "", "install"),
        ("clean:", "", "clean"),
        (".PHONY: all", "", None),
        ("# comment: x", "", None),
        ("\tgcc -c a.c", "", None),
        ("baz:", "# Not a target:", None),
    ],
)
def test_target_name(extractor, line, previous, expected):
    assert extractor.target_name(line, previous) == expected
