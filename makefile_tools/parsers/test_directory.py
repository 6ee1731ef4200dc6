import ntpath

import pytest

from .directory import DirectoryTracker


@pytest.fixture
def tracker():
    return DirectoryTracker("/work")


def test_cd_collapses_history(tracker):
    tracker.apply("pushd sub")
    tracker.apply("cd /other")

    assert tracker.history == ["/work/sub", "/other"]
    assert tracker.current == "/other"


def test_cd_back_swaps_last_two(tracker):
    tracker.apply("cd lib")
    tracker.apply("cd -")

    assert tracker.current == "/work"
    assert tracker.history == ["/work/lib", "/work"]


def test_cd_back_with_single_entry_stays(tracker):
    tracker.apply("cd -")
    assert tracker.history == ["/work", "/work"]


def test_pushd_popd(tracker):
    tracker.apply("pushd src")
    tracker.apply("pushd ../include")
    assert tracker.current == "/work/include"

    tracker.apply("popd")
    assert tracker.current == "/work/src"


def test_popd_never_empties_history(tracker):
    tracker.apply("popd")
    tracker.apply("popd")
    assert tracker.history == ["/work"]


def test_make_entering_and_leaving(tracker):
    tracker.apply("make[1]: Entering directory '/work/lib'")
    assert tracker.current == "/work/lib"

    tracker.apply("make[1]: Leaving directory '/work/lib'")
    assert tracker.current == "/work"


def test_unparsable_entering_directory_keeps_current(tracker):
    tracker.apply("make: Entering directory without quotes")
    assert tracker.history == ["/work", "/work"]


def test_windows_paths():
    tracker = DirectoryTracker("C:\\proj", ntpath)
    tracker.apply("cd src")
    assert tracker.current == "C:\\proj\\src"


def test_reset(tracker):
    tracker.apply("cd /elsewhere")
    tracker.reset()
    assert tracker.history == ["/work"]
