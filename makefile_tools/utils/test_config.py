import json
import os
from pathlib import Path

import pytest

from ..core.errors import ConfigurationError
from .config import ConfigureSettings, SettingsLoader
from .paths import SearchPathLocator, make_full_path


def test_defaults(tmp_path):
    settings = ConfigureSettings(workspace_root=tmp_path)

    assert settings.make_command == "make"
    assert settings.dry_run_switches == ["--always-make", "--keep-going"]
    assert settings.cache_file == tmp_path.resolve() / ".makefile_tools" / "configuration_cache.json"
    assert settings.dry_run_log.name == "dryrun.log"
    assert settings.targets_log.name == "targets.log"


def test_parse_options_reads_sdk_on_windows(tmp_path, monkeypatch):
    monkeypatch.setenv("WindowsSDKVersion", "10.0.22621.0")

    windows = ConfigureSettings(workspace_root=tmp_path, platform="win32").parse_options()
    linux = ConfigureSettings(workspace_root=tmp_path, platform="linux").parse_options()

    assert windows.platform_sdk_version == "10.0.22621.0"
    assert linux.platform_sdk_version is None
    assert linux.chunk_size == 100


def test_load_json_with_relative_workspace(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"workspace_root": "project", "make_args": ["-j2"]}), encoding="utf-8")

    settings = SettingsLoader.load_from_file(config)

    assert settings.workspace_root == project.resolve()
    assert settings.make_args == ["-j2"]


def test_load_toml_table_with_overrides(tmp_path):
    config = tmp_path / "makefile_tools.toml"
    config.write_text(
        '[makefile_tools]\nmake_command = "gmake"\nchunk_size = 50\n', encoding="utf-8"
    )

    settings = SettingsLoader.load_from_file(config, make_command="remake", build_log=None)

    assert settings.make_command == "remake"
    assert settings.chunk_size == 50
    assert settings.workspace_root == tmp_path.resolve()


@pytest.mark.parametrize(
    "content,suffix",
    [
        ("{broken", ".json"),
        ("[1, 2]", ".json"),
        ("chunk_size = ", ".toml"),
        ("make_command: make", ".yaml"),
    ],
)
def test_invalid_files(tmp_path, content, suffix):
    config = tmp_path / f"settings{suffix}"
    config.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        SettingsLoader.load_from_file(config)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        SettingsLoader.load_from_file(tmp_path / "nope.json")


def test_invalid_option_is_reported(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        SettingsLoader.from_dict({"workspace_root": str(tmp_path), "chunk_size": 0})

    assert excinfo.value.context.additional_info["invalid_option"] == "chunk_size"


def test_unknown_option_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        SettingsLoader.from_dict({"workspace_root": str(tmp_path), "colour": "blue"})


def test_make_full_path():
    assert make_full_path('"../inc"', "/work/src") == "/work/inc"
    assert make_full_path("/abs//path/", "/work") == "/abs/path"
    assert make_full_path("  ", "/work") == "/work"


def test_search_path_locator(tmp_path):
    (tmp_path / "gcc").write_text("", encoding="utf-8")
    locator = SearchPathLocator(search_path=[str(tmp_path / "missing"), str(tmp_path)])

    assert locator.locate("gcc") == str(tmp_path)
    assert locator.locate("clang") is None


def test_search_path_locator_defaults_to_path(monkeypatch, tmp_path):
    monkeypatch.setenv("PATH", os.pathsep.join([str(tmp_path), ""]))
    assert SearchPathLocator().search_path == [str(tmp_path)]
