"""Caches that wrap a kubeconfig store and remember fetched kubeconfigs."""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from kubeswitch.models import CacheConfig, KubeconfigStore

log = logging.getLogger(__name__)

_KUBECONFIG_SUFFIX = "cache"


@runtime_checkable
class Store(Protocol):
    """What a kubeconfig store offers to the search and to caches."""

    def get_kubeconfig_for_path(self, path: str) -> bytes: ...

    def get_id(self) -> str: ...

    def get_kind(self) -> str: ...

    def get_context_prefix(self, path: str) -> str: ...

    def verify_kubeconfig_paths(self) -> None: ...

    def search(self) -> Iterable[Any]: ...

    def get_store_config(self) -> KubeconfigStore: ...


class CacheError(Exception):
    """A cache cannot be created or cannot store a kubeconfig."""


CacheFactory = Callable[[Store, "CacheConfig | None"], Store]

_factories: dict[str, CacheFactory] = {}
_factories_lock = threading.Lock()


def register(kind, factory):
    """Make ``factory`` the creator of caches of ``kind``."""
    with _factories_lock:
        _factories[kind] = factory


def new_cache(kind, store, cfg):
    """Wrap ``store`` in a cache of the registered ``kind``."""
    with _factories_lock:
        factory = _factories.get(kind)
    if factory is None:
        raise CacheError(f"no cache factory registered for kind {kind}")
    return factory(store, cfg)


class _PassThrough:
    """Forwards everything but kubeconfig retrieval to the upstream store."""

    def __init__(self, upstream: Store):
        self._upstream = upstream

    def get_id(self):
        return self._upstream.get_id()

    def get_kind(self):
        return self._upstream.get_kind()

    def get_context_prefix(self, path):
        return self._upstream.get_context_prefix(path)

    def verify_kubeconfig_paths(self):
        return self._upstream.verify_kubeconfig_paths()

    def search(self):
        return self._upstream.search()

    def get_store_config(self):
        return self._upstream.get_store_config()


class MemoryCache(_PassThrough):
    """Keeps fetched kubeconfigs in memory for the life of the process."""

    def __init__(self, upstream):
        super().__init__(upstream)
        self._cache: dict[str, bytes] = {}

    def get_kubeconfig_for_path(self, path):
        if path in self._cache:
            log.debug("get_kubeconfig_for_path: %s found in cache", path)
            return self._cache[path]
        log.debug("get_kubeconfig_for_path: %s not cached", path)
        kubeconfig = self._upstream.get_kubeconfig_for_path(path)
        self._cache[path] = kubeconfig
        return kubeconfig

    def get_id(self):
        return super().get_id()

    def get_kind(self):
        return super().get_kind()

    def get_context_prefix(self, path):
        return super().get_context_prefix(path)

    def verify_kubeconfig_paths(self):
        return super().verify_kubeconfig_paths()

    def search(self):
        return super().search()

    def get_store_config(self):
        return super().get_store_config()


def _expand(path: str) -> str:
    return os.path.expanduser(os.path.expandvars(path))


def _cache_directory(cfg: CacheConfig | None) -> str:
    if cfg is None:
        raise CacheError("cache config must be provided for file cache")
    raw = cfg.config
    if raw is None:
        raise CacheError("cache is not configured")
    if not isinstance(raw, Mapping):
        raise CacheError(f"cache config is invalid: expected a mapping, got {type(raw).__name__}")
    path = raw.get("path")
    if path is not None and not isinstance(path, str):
        raise CacheError("cache config is invalid: path must be a string")
    if not path:
        raise CacheError("path for filesystem cache was not configured")
    return path


def _is_kubeconfig(data: bytes) -> bool:
    try:
        return isinstance(yaml.safe_load(data), Mapping)
    except yaml.YAMLError:
        return False


class FileCache(_PassThrough):
    """Keeps fetched kubeconfigs as files in a directory on the local filesystem."""

    def __init__(self, upstream, cfg):
        super().__init__(upstream)
        self.path = _cache_directory(cfg)

    def _filename(self, path: str) -> str:
        # the hash holds no directories or special characters
        return hashlib.md5(path.encode("utf-8")).hexdigest() + self._suffix()

    def _suffix(self) -> str:
        return f".{self._upstream.get_id()}.{_KUBECONFIG_SUFFIX}"

    def get_kubeconfig_for_path(self, path):
        """Return the cached kubeconfig, fetching and storing it on a miss."""
        log.debug("Looking for '%s'", path)
        file = Path(_expand(os.path.join(self.path, self._filename(path))))

        try:
            cached = file.read_bytes()
        except OSError:
            cached = None
        if cached is not None and _is_kubeconfig(cached):
            log.debug("kubeconfig found in cache '%s'", path)
            return cached

        log.debug("kubeconfig not found in cache '%s'", path)
        kubeconfig = self._upstream.get_kubeconfig_for_path(path)
        if not _is_kubeconfig(kubeconfig):
            raise CacheError(f"failed to store kubeconfig in cache: {path!r} is not a valid kubeconfig")
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_bytes(kubeconfig)
        return kubeconfig

    def flush(self):
        """Delete this store's cached files and return how many were removed."""
        directory = Path(_expand(self.path))
        try:
            entries = list(directory.iterdir())
        except OSError:
            return 0
        deleted = 0
        suffix = self._suffix()
        for entry in entries:
            if entry.is_dir() or not entry.name.endswith(suffix):
                continue
            try:
                entry.unlink()
            except OSError as exc:
                raise CacheError(f"failed to delete file '{entry.name}': {exc}") from exc
            deleted += 1
        return deleted

    def get_id(self):
        return super().get_id()

    def get_kind(self):
        return super().get_kind()

    def get_context_prefix(self, path):
        return super().get_context_prefix(path)

    def verify_kubeconfig_paths(self):
        return super().verify_kubeconfig_paths()

    def search(self):
        return super().search()

    def get_store_config(self):
        return super().get_store_config()


register("memory", lambda store, cfg: MemoryCache(store))
register("filesystem", FileCache)