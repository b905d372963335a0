"""
Factory for aliased storage handles.

This module provides AliasStorageFactory, which turns a resolver and an
optional storage constructor into the handle-creation function used by
callers, plus the ``create``/``create_cached`` shortcuts.
"""

import logging
from typing import Any, Optional

from aliasstore.core.config import AliasStorageConfig
from aliasstore.core.proxy import AliasedStorage
from aliasstore.core.resolution_cache import ResolutionCache
from aliasstore.io.storage_backend import create_backend
from aliasstore.io.types import Resolver, StorageConstructor

logger = logging.getLogger(__name__)


class AliasStorageFactory:
    """
    Creates AliasedStorage handles for aliases.

    Each call returns an independent handle with its own queue and state.
    The only state shared between handles is the resolution cache, which
    exists when ``config.cache_enabled`` is set or a cache is passed in.
    """

    def __init__(self, resolver: Resolver, storage: Optional[StorageConstructor] = None,
                 config: Optional[AliasStorageConfig] = None,
                 cache: Optional[ResolutionCache] = None):
        """
        Initialize the factory.

        Args:
            resolver: Function from alias to real location, plain or awaitable
            storage: Storage constructor called as storage(location, **options).
                Defaults to the backend named by config.default_backend.
            config: Factory configuration (defaults to AliasStorageConfig())
            cache: Explicit resolution cache; enables caching regardless of config
        """
        if not callable(resolver):
            raise TypeError(f"Resolver must be callable, got {type(resolver).__name__}")
        self.config = config if config is not None else AliasStorageConfig()
        self.resolver = resolver
        self.storage = storage if storage is not None else create_backend(self.config.default_backend)

        if cache is None and self.config.cache_enabled:
            cache = ResolutionCache(self.config.cache_size)
        self.cache = cache

        logger.debug(f"Initialized AliasStorageFactory with storage={getattr(self.storage, '__name__', self.storage)}, "
                     f"cache={self.cache}")

    def __call__(self, alias: str, **options: Any) -> AliasedStorage:
        """
        Return a handle for an alias.

        Args:
            alias: Logical name to resolve
            **options: Storage constructor options, merged over config.storage_options

        Returns:
            AliasedStorage, already RESOLVED on a cache hit, PENDING otherwise
        """
        merged = {**self.config.storage_options, **options}

        if self.cache is not None:
            location = self.cache.get(alias)
            if location is not None:
                try:
                    return AliasedStorage.from_location(alias, location, self.storage, merged)
                except Exception as e:
                    # Stale entry: forget it and go through normal resolution
                    logger.warning(f"Cached location {location} for alias '{alias}' could not be opened: {e}")
                    self.cache.discard(alias)

        return AliasedStorage.resolve(alias, self.resolver, self.storage, merged, self.cache)

    def __repr__(self):
        return f"AliasStorageFactory(resolver={self.resolver!r}, cache={self.cache!r})"


def create(resolver: Resolver, storage: Optional[StorageConstructor] = None,
           **config: Any) -> AliasStorageFactory:
    """
    Create a handle factory that resolves every alias independently.

    Args:
        resolver: Function from alias to real location, plain or awaitable
        storage: Storage constructor; defaults to FileStorageBackend
        **config: AliasStorageConfig fields

    Returns:
        Callable factory: factory(alias, **options) -> AliasedStorage
    """
    return AliasStorageFactory(resolver, storage, AliasStorageConfig(**config))


def create_cached(resolver: Resolver, storage: Optional[StorageConstructor] = None,
                  cache_size: Optional[int] = None, **config: Any) -> AliasStorageFactory:
    """
    Create a handle factory that caches resolved locations.

    Handles for an alias resolved earlier by the same factory are returned
    already resolved, without calling the resolver again.
    """
    config["cache_enabled"] = True
    if cache_size is not None:
        config["cache_size"] = cache_size
    return AliasStorageFactory(resolver, storage, AliasStorageConfig(**config))
