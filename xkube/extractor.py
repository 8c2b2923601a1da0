"""Parser caches per provider configuration and a discovery-aware lookup."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from .gvk import GroupVersion, GvkParser, gv_relative_api_path
from .openapi import RestClient, discovery_paths, new_parser_from_openapi_group_version


class DiscoveryError(LookupError):
    """Raised when a group version is missing from discovery."""


@dataclass
class _CacheEntry:
    parser: GvkParser | None
    etag: str


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Any = None
        self.error: BaseException | None = None


class GVKParserCache:
    """Parsers cached per group version, tagged with their schema hash."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.store: dict[GroupVersion, _CacheEntry] = {}
        self._flight_lock = threading.Lock()
        self._in_flight: dict[str, _Call] = {}

    def _single_flight(self, key: str, fn: Callable[[], Any]) -> Any:
        """Run fn once for concurrent callers with the same key."""
        with self._flight_lock:
            call = self._in_flight.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._in_flight[key] = call
        if leader:
            try:
                call.value = fn()
            except BaseException as exc:
                call.error = exc
            finally:
                with self._flight_lock:
                    del self._in_flight[key]
                call.done.set()
        else:
            call.done.wait()
        if call.error is not None:
            raise call.error
        return call.value


class GVKParserCacheManager:
    """Keeps one parser cache per provider configuration UID."""

    def __init__(self, *options: Callable[["GVKParserCacheManager"], None]) -> None:
        self._lock = threading.Lock()
        self.cache_store: dict[str, GVKParserCache] = {}
        for option in options:
            option(self)

    def load_or_new_cache_for_provider_config(self, pc: Any) -> GVKParserCache:
        with self._lock:
            return self.cache_store.setdefault(pc.uid, GVKParserCache())

    def remove_cache(self, pc: Any) -> None:
        with self._lock:
            self.cache_store.pop(pc.uid, None)


class CachingExtractor:
    """Finds parsers for group versions, reusing cached ones while fresh."""

    def __init__(self, client: RestClient, cache: GVKParserCache) -> None:
        self.client = client
        self.cache = cache

    def get_parser_for_gv(self, gv: GroupVersion) -> GvkParser:
        paths, etags = discovery_paths(self.client)
        cache = self.cache
        with cache._lock:
            for cached_gv, entry in list(cache.store.items()):
                path = gv_relative_api_path(cached_gv)
                if path not in etags or etags[path] != entry.etag:
                    del cache.store[cached_gv]

        gv_path = gv_relative_api_path(gv)
        oapi_gv = paths.get(gv_path)
        if oapi_gv is None:
            raise DiscoveryError(f'cannot find GroupVersion "{gv_path}" in discovery')
        etag = etags.get(gv_path)
        if etag is None:
            raise DiscoveryError(f'cannot find ETag for GroupVersion "{gv_path}" in discovery')

        with cache._lock:
            entry = cache.store.get(gv)
        if entry is not None and entry.etag == etag and etag:
            return entry.parser

        def build() -> GvkParser:
            parser = new_parser_from_openapi_group_version(oapi_gv)
            # Without a hash there is nothing to check freshness against.
            if etag:
                with cache._lock:
                    cache.store[gv] = _CacheEntry(parser, etag)
            return parser

        return cache._single_flight(str(gv), build)