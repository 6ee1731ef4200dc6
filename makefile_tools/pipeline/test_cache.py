import json

import pytest

from ..core.errors import CacheError
from ..provider.builder import ConfigurationSnapshot, SourceFileConfiguration
from .cache import ConfigurationCache


@pytest.fixture
def snapshot():
    return ConfigurationSnapshot(
        file_index={
            "/work/a.c": SourceFileConfiguration(
                defines=["A"],
                include_path=["/work/include"],
                standard="c11",
                intellisense_mode="gcc-x64",
                compiler_path="/usr/bin/gcc",
            )
        },
        browse_path=["/work/include", "/work"],
        build_targets=["all", "clean"],
        launch_targets=["/work>app()"],
    )


@pytest.mark.asyncio
async def test_save_writes_camel_case_document(tmp_path, snapshot):
    cache = ConfigurationCache(tmp_path / "cache" / "configuration_cache.json")

    await cache.save(snapshot)

    data = json.loads(cache.path.read_text(encoding="utf-8"))
    assert data["buildTargets"] == ["all", "clean"]
    assert data["launchTargets"] == ["/work>app()"]
    assert data["fileIndex"][0][0] == "/work/a.c"
    assert data["fileIndex"][0][1]["includePath"] == ["/work/include"]
    assert not (tmp_path / "cache" / "configuration_cache.json.tmp").exists()


@pytest.mark.asyncio
async def test_load_restores_snapshot(tmp_path, snapshot):
    cache = ConfigurationCache(tmp_path / "configuration_cache.json")
    await cache.save(snapshot)

    assert await cache.load() == snapshot


@pytest.mark.asyncio
async def test_missing_cache_loads_none(tmp_path):
    assert await ConfigurationCache(tmp_path / "missing.json").load() is None


@pytest.mark.asyncio
async def test_corrupt_cache_loads_none(tmp_path):
    path = tmp_path / "configuration_cache.json"
    path.write_text("{not json", encoding="utf-8")

    assert await ConfigurationCache(path).load() is None


@pytest.mark.asyncio
async def test_save_failure_raises_cache_error(tmp_path, snapshot, mocker):
    cache = ConfigurationCache(tmp_path / "configuration_cache.json")
    mocker.patch("makefile_tools.pipeline.cache.os.replace", side_effect=OSError("disk full"))

    with pytest.raises(CacheError):
        await cache.save(snapshot)


def test_delete(tmp_path):
    path = tmp_path / "configuration_cache.json"
    path.write_text("{}", encoding="utf-8")
    cache = ConfigurationCache(path)

    cache.delete()
    cache.delete()

    assert not cache.exists()
