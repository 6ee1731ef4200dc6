import ntpath
import posixpath

import pytest

# Use relative imports as the directory is a package
from .models import (
    CommandResult,
    ConfigureOutcome,
    ConfigureResult,
    Language,
    LaunchTarget,
    ParseOptions,
    SubphaseResult,
    path_module_for,
)


@pytest.mark.parametrize(
    "file_path,expected",
    [
        ("main.cpp", Language.CPP),
        ("src/module.CC", Language.CPP),
        ("lib.cxx", Language.CPP),
        ("foo.c", Language.C),
        ("header.h", None),
    ],
)
def test_language_from_file(file_path, expected):
    assert Language.from_file(file_path) == expected


def test_parse_options_path_flavour():
    assert ParseOptions("/work", platform="linux").pathmod is posixpath
    assert ParseOptions("C:\\work", platform="win32").pathmod is ntpath
    assert ParseOptions("C:\\work", platform="win32").is_windows


def test_path_module_for_detects_drive_letters():
    assert path_module_for("C:\\proj\\main.cpp") is ntpath
    assert path_module_for("\\\\server\\share") is ntpath
    assert path_module_for("/home/user/main.cpp") is posixpath


def test_launch_target_canonical_posix():
    target = LaunchTarget("/work/out/app", "/work", ["--flag", "value"])

    canonical = target.to_canonical()

    assert canonical == "/work>out/app(--flag,value)"
    assert str(target) == canonical
    assert LaunchTarget.from_canonical(canonical) == target


def test_launch_target_canonical_windows():
    target = LaunchTarget("C:\\proj\\app.exe", "C:\\proj", [])

    canonical = target.to_canonical()

    assert canonical == "C:\\proj>app.exe()"
    decoded = LaunchTarget.from_canonical(canonical)
    assert decoded.binary_path == "C:\\proj\\app.exe"
    assert decoded.arguments == []


def test_launch_target_from_malformed_canonical():
    assert LaunchTarget.from_canonical("no separator here") is None


def test_configure_result_failed():
    assert ConfigureResult.NOT_FOUND.failed
    assert ConfigureResult.OTHER.failed
    assert not ConfigureResult.OUT_OF_DATE.failed
    assert not ConfigureResult.CANCELLED.failed


def test_configure_outcome_to_dict():
    outcome = ConfigureOutcome(
        result=ConfigureResult.SUCCESS,
        subphases=[SubphaseResult("obtain_trace", ConfigureResult.SUCCESS, 0.12345)],
        elapsed_time=1.5,
    )

    data = outcome.to_dict()

    assert outcome.success
    assert data["result"] == "success"
    assert data["subphases"] == [
        {"name": "obtain_trace", "result": "success", "elapsed_time": 0.123}
    ]


def test_command_result_success():
    assert CommandResult(exit_code=0).success
    assert not CommandResult(exit_code=2).success
    assert not CommandResult(exit_code=0, cancelled=True).success
