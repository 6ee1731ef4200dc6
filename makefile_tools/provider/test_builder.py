import pytest

from ..core.models import CompileUnit
from .builder import (
    ConfigurationProviderBuilder,
    ConfigurationSnapshot,
    SourceFileConfiguration,
    merge_sorted,
)


def make_unit(sources, defines=None, includes=None, standard="c++17"):
    return CompileUnit(
        defines=defines or [],
        include_paths=includes or [],
        forced_includes=[],
        standard=standard,
        intellisense_mode="gcc-x64",
        compiler_path="/usr/bin/g++",
        source_files=sources,
    )


@pytest.fixture
def units():
    return [
        make_unit(["/work/src/a.cpp"], defines=["A"], includes=["/work/include"]),
        make_unit(["/work/src/b.cpp", "/work/lib/c.cpp"], includes=["/work/include"]),
        make_unit(["/work/src/a.cpp"], defines=["A2"]),
    ]


def test_add_indexes_every_source_last_write_wins(units):
    builder = ConfigurationProviderBuilder()
    for unit in units:
        builder.add(unit)

    assert set(builder.file_index) == {"/work/src/a.cpp", "/work/src/b.cpp", "/work/lib/c.cpp"}
    assert builder.file_index["/work/src/a.cpp"].defines == ["A2"]
    assert builder.browse_path == ["/work/include", "/work/src", "/work/lib"]


def test_clean_replay_is_idempotent(units):
    builder = ConfigurationProviderBuilder()
    builder.apply(units, clean=True)
    first = builder.snapshot.copy()

    builder.apply(units, clean=True)

    assert builder.file_index == first.file_index
    assert builder.browse_path == first.browse_path


def test_incremental_apply_merges(units):
    builder = ConfigurationProviderBuilder()
    builder.apply(units[:1], clean=True)
    builder.apply([make_unit(["/work/other.cpp"])], clean=False)

    assert set(builder.file_index) == {"/work/src/a.cpp", "/work/other.cpp"}


def test_merge_from_clean_replaces(units):
    accumulated = ConfigurationProviderBuilder()
    accumulated.apply(units, clean=True)
    pass_builder = ConfigurationProviderBuilder()
    pass_builder.add(make_unit(["/work/new.cpp"]))

    accumulated.merge_from(pass_builder, clean=True)

    assert list(accumulated.file_index) == ["/work/new.cpp"]
    assert accumulated.browse_path == ["/work"]


def test_source_file_configuration_aliases():
    config = SourceFileConfiguration.from_unit(make_unit(["/work/a.cpp"], includes=["/inc"]))
    data = config.model_dump(by_alias=True)

    assert data["includePath"] == ["/inc"]
    assert data["intelliSenseMode"] == "gcc-x64"
    assert data["compilerPath"] == "/usr/bin/g++"
    assert SourceFileConfiguration.model_validate(data) == config


def test_windows_sources_use_windows_dirnames():
    builder = ConfigurationProviderBuilder()
    builder.add(make_unit(["C:\\proj\\src\\main.cpp"]))
    assert builder.browse_path == ["C:\\proj\\src"]


def test_merge_sorted():
    assert merge_sorted(["b", "a"], ["c", "a"], clean=False) == ["a", "b", "c"]
    assert merge_sorted(["b", "a"], ["c", "c"], clean=True) == ["c"]


def test_snapshot_clear():
    snapshot = ConfigurationSnapshot(build_targets=["all"], launch_targets=["x>y()"])
    snapshot.clear()
    assert snapshot == ConfigurationSnapshot()
