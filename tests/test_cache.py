"""Tests for the download cache (index + data files)."""

import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from pluginstall.cache import (
    CACHE_DATA_DIRECTORY_NAME,
    CACHE_INDEX_FILE_NAME,
    CacheIndex,
    DownloadCache,
    cache_file_name,
    create_cache,
)
from pluginstall.errors import CacheError, IndexParseError


@pytest.fixture
def cache(tmp_path):
    root = tmp_path / "cache"
    create_cache(root)
    return DownloadCache.open(root)


def put(cache, plugin="foo", version="9", data=b"jar bytes", file_name="foo.jar", ttl=None):
    return cache.put(plugin, version, file_name, "spiget", ttl, data)


def read_index(cache) -> dict:
    return json.loads((cache.path / CACHE_INDEX_FILE_NAME).read_text())


# --- bootstrap ---


def test_create_cache_layout(tmp_path):
    root = tmp_path / "cache"
    create_cache(root)
    assert (root / CACHE_DATA_DIRECTORY_NAME).is_dir()
    assert json.loads((root / CACHE_INDEX_FILE_NAME).read_text()) == {}


def test_create_cache_keeps_existing_index(cache):
    put(cache)
    create_cache(cache.path)
    assert "foo" in read_index(cache)


def test_open_missing_root(tmp_path):
    with pytest.raises(CacheError, match="not found"):
        DownloadCache.open(tmp_path / "nope")


def test_open_missing_data_dir(tmp_path):
    CacheIndex.create_in_dir(tmp_path)
    with pytest.raises(CacheError, match="data directory"):
        DownloadCache.open(tmp_path)


def test_open_missing_index(tmp_path):
    (tmp_path / CACHE_DATA_DIRECTORY_NAME).mkdir()
    with pytest.raises(CacheError):
        DownloadCache.open(tmp_path)


def test_open_corrupt_index_is_left_untouched(tmp_path):
    create_cache(tmp_path)
    index_path = tmp_path / CACHE_INDEX_FILE_NAME
    index_path.write_text('{\n  "foo": {')
    with pytest.raises(IndexParseError) as exc_info:
        DownloadCache.open(tmp_path)
    assert exc_info.value.lineno == 2
    assert exc_info.value.path == index_path
    assert index_path.read_text() == '{\n  "foo": {'


def test_open_index_with_wrong_shape(tmp_path):
    create_cache(tmp_path)
    (tmp_path / CACHE_INDEX_FILE_NAME).write_text('{"foo": {"versions": 3}}')
    with pytest.raises(IndexParseError):
        DownloadCache.open(tmp_path)


def test_open_index_not_utf8(tmp_path):
    create_cache(tmp_path)
    (tmp_path / CACHE_INDEX_FILE_NAME).write_bytes(b'{"\xff": {}}')
    with pytest.raises(IndexParseError):
        DownloadCache.open(tmp_path)


# --- put / get ---


def test_round_trip(cache):
    put(cache, data=b"\x00\x01payload", file_name="Foo-1.2.jar")
    cached = cache.get("foo", "9")
    assert cached is not None
    with cached:
        assert cached.read_bytes() == b"\x00\x01payload"
        assert cached.meta.original_file_name == "Foo-1.2.jar"


def test_get_missing(cache):
    assert cache.get("foo", "9") is None
    put(cache)
    assert cache.get("foo", "10") is None
    assert cache.get("bar", "9") is None


def test_put_persists_index(cache):
    meta = put(cache, ttl=timedelta(seconds=120))
    data = read_index(cache)
    entry = data["foo"]["versions"]["9"]
    assert data["foo"]["source_api"] == "spiget"
    assert entry["file_name"] == "foo.jar"
    assert entry["cache_file_name"] == meta.cache_file_name
    assert entry["ttl"] == 120
    assert (cache.data_path / meta.cache_file_name).read_bytes() == b"jar bytes"
    assert not list(cache.data_path.glob("*.tmp"))


def test_put_survives_reopen(cache):
    put(cache, data=b"kept")
    reopened = DownloadCache.open(cache.path)
    cached = reopened.get("foo", "9")
    assert cached is not None
    with cached:
        assert cached.read_bytes() == b"kept"


def test_overwrite_replaces_bytes(cache):
    put(cache, data=b"first payload, quite long")
    put(cache, data=b"second", file_name="foo-2.jar")
    cached = cache.get("foo", "9")
    assert cached is not None
    with cached:
        assert cached.read_bytes() == b"second"
        assert cached.meta.original_file_name == "foo-2.jar"
    assert len(list(cache.data_path.iterdir())) == 1


def test_metadata_is_a_copy(cache):
    put(cache)
    meta = cache.metadata("foo", "9")
    assert meta is not None
    meta.original_file_name = "changed.jar"
    assert cache.metadata("foo", "9").original_file_name == "foo.jar"


# --- staleness ---


def test_stale_entry_is_evicted(cache):
    meta = put(cache, ttl=timedelta(0))
    assert cache.get("foo", "9") is None
    assert cache.metadata("foo", "9") is None
    assert "foo" not in read_index(cache)
    assert not (cache.data_path / meta.cache_file_name).exists()


def test_no_ttl_entry_is_kept(cache):
    put(cache, ttl=None)
    cached = cache.get("foo", "9")
    assert cached is not None
    cached.close()


def test_stale_entry_in_index_on_disk(tmp_path):
    create_cache(tmp_path)
    name = cache_file_name("foo", "9", "spiget")
    (tmp_path / CACHE_DATA_DIRECTORY_NAME / name).write_bytes(b"old")
    added = datetime.now(timezone.utc) - timedelta(hours=2)
    (tmp_path / CACHE_INDEX_FILE_NAME).write_text(
        json.dumps(
            {
                "foo": {
                    "source_api": "spiget",
                    "versions": {
                        "9": {
                            "file_name": "foo.jar",
                            "cache_file_name": name,
                            "ttl": 3600,
                            "added": added.isoformat(),
                        }
                    },
                }
            }
        )
    )
    cache = DownloadCache.open(tmp_path)
    assert cache.get("foo", "9") is None
    assert not (tmp_path / CACHE_DATA_DIRECTORY_NAME / name).exists()


# --- delete ---


def test_delete_only_version_prunes_plugin(cache):
    meta = put(cache)
    removed = cache.delete("foo", "9")
    assert removed is not None
    assert removed.cache_file_name == meta.cache_file_name
    assert read_index(cache) == {}
    assert not (cache.data_path / meta.cache_file_name).exists()


def test_delete_one_of_several_versions(cache):
    put(cache, version="9")
    put(cache, version="5")
    cache.delete("foo", "9")
    data = read_index(cache)
    assert list(data["foo"]["versions"]) == ["5"]
    assert cache.metadata("foo", "5") is not None


def test_delete_missing_entry(cache):
    assert cache.delete("foo", "9") is None
    put(cache)
    assert cache.delete("foo", "10") is None


def test_delete_missing_backing_file(cache):
    meta = put(cache)
    (cache.data_path / meta.cache_file_name).unlink()
    with pytest.raises(CacheError, match="Could not delete"):
        cache.delete("foo", "9")
    # the index no longer refers to the missing file
    assert cache.metadata("foo", "9") is None
    assert read_index(cache) == {}


# --- handles ---


def test_copy_to_directory(cache, tmp_path):
    put(cache, data=b"0123456789", file_name="foo.jar")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    cached = cache.get("foo", "9")
    with cached:
        assert cached.copy_to_directory(out_dir) == 10
        # the handle is rewound and can be copied again
        assert cached.read_bytes() == b"0123456789"
    assert (out_dir / "foo.jar").read_bytes() == b"0123456789"


def test_copy_to_directory_rejects_unsafe_cached_name(cache, tmp_path):
    put(cache, file_name="../escape.jar")
    cached = cache.get("foo", "9")
    with cached, pytest.raises(CacheError, match="not a safe file name"):
        cached.copy_to_directory(tmp_path)
    assert not (tmp_path.parent / "escape.jar").exists()


# --- naming ---


def test_cache_file_name_format():
    assert cache_file_name("foo", "9", "spiget") == "spiget-foo-9.CACHED"


def test_cache_file_name_is_injective():
    plugins = ["foo", "foo-bar", "foo-", "-foo", "foo bar", "foo/bar", "föö", "a%2Db", "a-b"]
    versions = ["9", "1-2", "1", "2-", "bar-9", "%2D", "."]
    names = {}
    for plugin in plugins:
        for version in versions:
            for source in ("spiget", "hangar"):
                name = cache_file_name(plugin, version, source)
                assert name not in names, (plugin, version, source, names.get(name))
                names[name] = (plugin, version, source)


def test_cache_file_name_has_no_path_separators():
    name = cache_file_name("../../etc", "..\\x", "spiget")
    assert "/" not in name
    assert "\\" not in name


# --- concurrency ---


def test_concurrent_puts_all_land_in_index(cache):
    def worker(n):
        put(cache, plugin=f"plugin{n % 3}", version=str(n), data=str(n).encode())
        cached = cache.get(f"plugin{n % 3}", str(n))
        assert cached is not None
        cached.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(worker, range(24)))

    data = read_index(cache)
    assert sum(len(p["versions"]) for p in data.values()) == 24
    assert len(list(cache.data_path.iterdir())) == 24


def test_get_is_isolated_from_concurrent_delete(cache, monkeypatch):
    put(cache, data=b"still here")
    lookup = cache._index.lookup
    deleter = threading.Thread(target=cache.delete, args=("foo", "9"))

    def lookup_then_delete(plugin_name, version_identifier):
        meta = lookup(plugin_name, version_identifier)
        deleter.start()
        # the delete has to wait for the lookup's read lock
        deleter.join(timeout=0.2)
        return meta

    monkeypatch.setattr(cache._index, "lookup", lookup_then_delete)
    cached = cache.get("foo", "9")
    deleter.join()
    monkeypatch.undo()

    assert cached is not None
    with cached:
        assert cached.read_bytes() == b"still here"
    assert cache.get("foo", "9") is None


# --- failed index writes ---


def test_failed_overwrite_leaves_no_stale_entry(cache, monkeypatch):
    put(cache, data=b"old bytes", file_name="old.jar")
    replace = cache._index.replace
    calls = []

    def fail_second_replace(plugins):
        calls.append(plugins)
        if len(calls) == 2:
            raise OSError("disk full")
        replace(plugins)

    monkeypatch.setattr(cache._index, "replace", fail_second_replace)
    with pytest.raises(CacheError, match="disk full"):
        put(cache, data=b"new bytes", file_name="new.jar")
    monkeypatch.undo()

    # the old metadata never points at the new bytes
    assert cache.metadata("foo", "9") is None
    assert DownloadCache.open(cache.path).metadata("foo", "9") is None


def test_failed_index_write_keeps_old_entry_and_bytes(cache, monkeypatch):
    put(cache, data=b"old bytes", file_name="old.jar")

    def fail(plugins):
        raise OSError("read-only file system")

    monkeypatch.setattr(cache._index, "replace", fail)
    with pytest.raises(CacheError):
        put(cache, data=b"new bytes", file_name="new.jar")
    monkeypatch.undo()

    cached = cache.get("foo", "9")
    assert cached is not None
    with cached:
        assert cached.meta.original_file_name == "old.jar"
        assert cached.read_bytes() == b"old bytes"
