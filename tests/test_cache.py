import pytest

from kubeswitch.cache import (
    CacheError,
    FileCache,
    MemoryCache,
    Store,
    new_cache,
    register,
)
from kubeswitch.models import CacheConfig, KubeconfigStore, StoreKind

KUBECONFIG = b"apiVersion: v1\nkind: Config\ncurrent-context: dev\n"


class FakeStore:
    def __init__(self, data=None, store_id="up"):
        self.data = data if data is not None else {"/a/config": KUBECONFIG}
        self.store_id = store_id
        self.calls = []
        self.config = KubeconfigStore(id=store_id, kind=StoreKind.FILESYSTEM, paths=["/a"])

    def get_kubeconfig_for_path(self, path):
        self.calls.append(path)
        if path not in self.data:
            raise FileNotFoundError(path)
        return self.data[path]

    def get_id(self):
        return self.store_id

    def get_kind(self):
        return StoreKind.FILESYSTEM

    def get_context_prefix(self, path):
        return "prefix"

    def verify_kubeconfig_paths(self):
        return None

    def search(self):
        return iter(["/a/config"])

    def get_store_config(self):
        return self.config


def _file_cache(tmp_path, upstream):
    return FileCache(upstream, CacheConfig(kind="filesystem", config={"path": str(tmp_path)}))


def test_caches_satisfy_store_protocol(tmp_path):
    memory = new_cache("memory", FakeStore(), None)
    file_cache = _file_cache(tmp_path, FakeStore())
    assert isinstance(memory, Store)
    assert isinstance(file_cache, Store)
    assert memory.get_id() == "up"
    assert file_cache.get_id() == "up"


def test_memory_cache_fetches_once():
    upstream = FakeStore()
    cache = MemoryCache(upstream)
    assert cache.get_kubeconfig_for_path("/a/config") == KUBECONFIG
    assert cache.get_kubeconfig_for_path("/a/config") == KUBECONFIG
    assert upstream.calls == ["/a/config"]


def test_memory_cache_does_not_cache_errors():
    upstream = FakeStore()
    cache = MemoryCache(upstream)
    with pytest.raises(FileNotFoundError):
        cache.get_kubeconfig_for_path("/missing")
    with pytest.raises(FileNotFoundError):
        cache.get_kubeconfig_for_path("/missing")
    assert upstream.calls == ["/missing", "/missing"]


def test_memory_cache_passes_through():
    upstream = FakeStore()
    cache = MemoryCache(upstream)
    assert cache.get_id() == "up"
    assert cache.get_kind() == StoreKind.FILESYSTEM
    assert cache.get_context_prefix("/a/config") == "prefix"
    assert list(cache.search()) == ["/a/config"]
    assert cache.get_store_config() is upstream.config


def test_new_cache_memory_kind():
    cache = new_cache("memory", FakeStore(), None)
    assert isinstance(cache, MemoryCache)
    assert cache.get_kubeconfig_for_path("/a/config") == KUBECONFIG


def test_new_cache_filesystem_kind(tmp_path):
    cache = new_cache("filesystem", FakeStore(), CacheConfig(kind="filesystem", config={"path": str(tmp_path)}))
    assert isinstance(cache, FileCache)
    assert cache.get_kubeconfig_for_path("/a/config") == KUBECONFIG
    files = list(tmp_path.iterdir())
    assert len(files) == 1
    assert files[0].name.endswith(".up.cache")


def test_new_cache_unknown_kind():
    with pytest.raises(CacheError, match="no cache factory registered for kind nope"):
        new_cache("nope", FakeStore(), None)


def test_register_custom_factory():
    register("custom-test", lambda store, cfg: MemoryCache(store))
    cache = new_cache("custom-test", FakeStore(store_id="x"), None)
    assert cache.get_id() == "x"


def test_file_cache_requires_config():
    with pytest.raises(CacheError, match="cache config must be provided"):
        FileCache(FakeStore(), None)


def test_file_cache_requires_inner_config():
    with pytest.raises(CacheError, match="cache is not configured"):
        FileCache(FakeStore(), CacheConfig(kind="filesystem", config=None))


def test_file_cache_requires_path():
    with pytest.raises(CacheError, match="path for filesystem cache was not configured"):
        FileCache(FakeStore(), CacheConfig(kind="filesystem", config={}))


def test_file_cache_rejects_non_mapping_config():
    with pytest.raises(CacheError, match="cache config is invalid"):
        FileCache(FakeStore(), CacheConfig(kind="filesystem", config=["wrong"]))


def test_file_cache_stores_and_reuses(tmp_path):
    upstream = FakeStore()
    cache = _file_cache(tmp_path, upstream)
    assert cache.get_kubeconfig_for_path("/a/config") == KUBECONFIG

    files = list(tmp_path.iterdir())
    assert len(files) == 1
    assert files[0].name.endswith(".up.cache")
    assert files[0].read_bytes() == KUBECONFIG

    second = _file_cache(tmp_path, FakeStore(data={}))
    assert second.get_kubeconfig_for_path("/a/config") == KUBECONFIG
    assert upstream.calls == ["/a/config"]


def test_file_cache_distinct_paths_get_distinct_files(tmp_path):
    upstream = FakeStore(data={"/a/config": KUBECONFIG, "/b/config": KUBECONFIG})
    cache = _file_cache(tmp_path, upstream)
    cache.get_kubeconfig_for_path("/a/config")
    cache.get_kubeconfig_for_path("/b/config")
    assert len(list(tmp_path.iterdir())) == 2


def test_file_cache_upstream_error_is_not_cached(tmp_path):
    cache = _file_cache(tmp_path, FakeStore())
    with pytest.raises(FileNotFoundError):
        cache.get_kubeconfig_for_path("/missing")
    assert list(tmp_path.iterdir()) == []


def test_file_cache_invalid_kubeconfig(tmp_path):
    cache = _file_cache(tmp_path, FakeStore(data={"/bad": b"- just\n- a list\n"}))
    with pytest.raises(CacheError, match="failed to store kubeconfig in cache"):
        cache.get_kubeconfig_for_path("/bad")


def test_file_cache_flush_only_removes_own_files(tmp_path):
    cache = _file_cache(tmp_path, FakeStore())
    cache.get_kubeconfig_for_path("/a/config")
    other = tmp_path / "unrelated.yaml"
    other.write_text("x: 1")
    (tmp_path / "sub.up.cache").mkdir()

    assert cache.flush() == 1
    assert other.exists()
    assert (tmp_path / "sub.up.cache").is_dir()
    assert cache.flush() == 0


def test_file_cache_flush_missing_directory(tmp_path):
    cache = _file_cache(tmp_path / "absent", FakeStore())
    assert cache.flush() == 0


def test_file_cache_passes_through(tmp_path):
    upstream = FakeStore()
    cache = _file_cache(tmp_path, upstream)
    assert cache.get_id() == "up"
    assert cache.get_kind() == StoreKind.FILESYSTEM
    assert cache.get_context_prefix("/a/config") == "prefix"
    assert list(cache.search()) == ["/a/config"]
    assert cache.get_store_config() is upstream.config