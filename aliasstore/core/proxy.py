"""
Aliased storage handle.

An AliasedStorage is returned to callers as soon as they ask for an alias.
It exposes the random access storage surface immediately: calls issued while
the alias is still being resolved are queued, replayed in order once the
backend exists, or answered with the resolution error if resolution fails.
"""

import asyncio
import inspect
import logging
import os
from enum import Enum, auto
from typing import Any, Dict, Optional

from aliasstore.core.deferred import OperationQueue
from aliasstore.core.errors import (
    AliasResolutionError,
    InvalidAliasError,
    NotReadyError,
    PermanentFailureError,
    ResolutionFailedError
)
from aliasstore.core.resolution_cache import ResolutionCache
from aliasstore.io.types import Resolver, StorageConstructor

logger = logging.getLogger(__name__)


class ResolutionState(Enum):
    """Resolution state of a handle. Leaves PENDING exactly once."""
    PENDING = auto()
    RESOLVED = auto()
    FAILED = auto()


def validate_location(alias: str, value: Any) -> str:
    """
    Normalize a resolver result into a location string.

    Raises:
        InvalidAliasError: If the value is not a non-empty str or os.PathLike
    """
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if not isinstance(value, str) or not value:
        raise InvalidAliasError(alias, value)
    return value


class AliasedStorage:
    """
    Storage handle for an alias whose real location may not be known yet.

    Capabilities (write, read, stat, delete, close, destroy, on) take the same
    arguments as the backend, e.g. ``write(offset, data, callback)``:

    - PENDING: the call is queued and returns None.
    - RESOLVED: the call is forwarded to the backend and its return value passed back.
    - FAILED: PermanentFailureError is raised.

    ``on`` always returns the handle so subscriptions chain in any state.

    Any other public attribute, ``location`` included, raises NotReadyError
    while pending and is forwarded to the backend once resolved. ``opened``,
    ``closed`` and ``destroyed`` read as False until the backend exists.
    ``resolved_location`` and ``backend`` describe the resolution itself and
    follow the same not-ready rule.
    """

    def __init__(self, alias: str, storage: StorageConstructor,
                 options: Optional[Dict[str, Any]] = None,
                 cache: Optional[ResolutionCache] = None):
        self.alias = alias
        self._location: Optional[str] = None
        self._storage = storage
        self._options = dict(options or {})
        self._cache = cache
        self._state = ResolutionState.PENDING
        self._store: Any = None
        self._error: Optional[BaseException] = None
        self._queue = OperationQueue()
        self._replaying = False
        self._future: Optional[asyncio.Future] = None
        self._settled = asyncio.Event()

    # --- Construction ---

    @classmethod
    def resolve(cls, alias: str, resolver: Resolver, storage: StorageConstructor,
                options: Optional[Dict[str, Any]] = None,
                cache: Optional[ResolutionCache] = None) -> "AliasedStorage":
        """
        Create a pending handle and start resolving its alias.

        The resolver is called once, right away. Its result (plain value or
        awaitable) settles on the running event loop, so calls made right
        after this returns are always queued.

        Raises:
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()
        handle = cls(alias, storage, options, cache)
        future = loop.create_future()
        try:
            outcome = resolver(alias)
        except Exception as e:
            future.set_exception(e)
        else:
            if inspect.isawaitable(outcome):
                future = asyncio.ensure_future(outcome)
            else:
                future.set_result(outcome)
        handle._future = future
        future.add_done_callback(handle._settle)
        logger.debug(f"Started resolution for alias '{alias}'")
        return handle

    @classmethod
    def from_location(cls, alias: str, location: str, storage: StorageConstructor,
                      options: Optional[Dict[str, Any]] = None) -> "AliasedStorage":
        """Create a handle that is already resolved against a known location."""
        handle = cls(alias, storage, options)
        store = storage(location, **handle._options)
        handle._mark_resolved(location, store)
        return handle

    # --- Introspection ---

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """The resolution error once FAILED, else None."""
        return self._error

    @property
    def pending_operations(self) -> int:
        return len(self._queue)

    @property
    def resolved_location(self) -> str:
        """The location the alias resolved to, as returned by the resolver."""
        self._check_ready("resolved_location")
        return self._location

    @property
    def backend(self) -> Any:
        """The storage object built for the resolved location."""
        self._check_ready("backend")
        return self._store

    async def wait_resolved(self) -> ResolutionState:
        """Wait until the handle leaves PENDING and return the final state. Never raises."""
        await self._settled.wait()
        return self._state

    # --- Status flags ---

    @property
    def opened(self) -> bool:
        return self._status("opened")

    @property
    def closed(self) -> bool:
        return self._status("closed")

    @property
    def destroyed(self) -> bool:
        return self._status("destroyed")

    def _status(self, name: str) -> bool:
        self._check_not_failed()
        if self._store is None:
            return False
        return getattr(self._store, name, False)

    # --- Capabilities ---

    def write(self, *args, **kwargs) -> Any:
        """write(offset, data, callback=None)"""
        return self._dispatch("write", args, kwargs)

    def read(self, *args, **kwargs) -> Any:
        """read(offset, length, callback=None); callback receives (error, data)"""
        return self._dispatch("read", args, kwargs)

    def stat(self, *args, **kwargs) -> Any:
        """stat(callback=None); callback receives (error, stat)"""
        return self._dispatch("stat", args, kwargs)

    def delete(self, *args, **kwargs) -> Any:
        """delete(offset, length, callback=None)"""
        return self._dispatch("delete", args, kwargs)

    def close(self, *args, **kwargs) -> Any:
        """close(callback=None)"""
        return self._dispatch("close", args, kwargs)

    def destroy(self, *args, **kwargs) -> Any:
        """destroy(callback=None)"""
        return self._dispatch("destroy", args, kwargs)

    def on(self, *args, **kwargs) -> "AliasedStorage":
        """on(event_name, listener); returns the handle for chaining"""
        self._dispatch("on", args, kwargs)
        return self

    def _dispatch(self, capability: str, args: tuple, kwargs: Dict[str, Any]) -> Any:
        self._check_not_failed()
        if self._state is ResolutionState.RESOLVED and not self._replaying:
            return getattr(self._store, capability)(*args, **kwargs)
        # Calls made during replay join the end of the queue to keep issue order
        self._queue.append(capability, args, kwargs)
        return None

    def _check_not_failed(self) -> None:
        if self._state is ResolutionState.FAILED:
            raise PermanentFailureError(self.alias, self._error)

    def _check_ready(self, name: str) -> None:
        self._check_not_failed()
        if self._store is None:
            raise NotReadyError(name, self.alias)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the handle itself
        if name.startswith("_"):
            raise AttributeError(name)
        self._check_ready(name)
        return getattr(self._store, name)

    # --- State transitions ---

    def _settle(self, future: asyncio.Future) -> None:
        if future.cancelled():
            self._mark_failed(ResolutionFailedError(f"Alias resolution was cancelled for '{self.alias}'",
                                                    alias=self.alias))
            return

        error = future.exception()
        if error is not None:
            if isinstance(error, AliasResolutionError):
                self._mark_failed(error)
            else:
                failure = ResolutionFailedError(f"Alias resolution failed for '{self.alias}': {error}",
                                                alias=self.alias)
                failure.__cause__ = error
                self._mark_failed(failure)
            return

        try:
            location = validate_location(self.alias, future.result())
        except InvalidAliasError as e:
            self._mark_failed(e)
            return

        try:
            store = self._storage(location, **self._options)
        except Exception as e:
            failure = ResolutionFailedError(f"Could not open storage for alias '{self.alias}' at {location}: {e}",
                                            alias=self.alias)
            failure.__cause__ = e
            self._mark_failed(failure)
            return

        # Only validated locations with a working backend are cached
        if self._cache is not None:
            self._cache.set(self.alias, location)
        self._mark_resolved(location, store)

    def _mark_resolved(self, location: str, store: Any) -> None:
        self._location = location
        self._store = store
        self._state = ResolutionState.RESOLVED
        logger.info(f"Resolved alias '{self.alias}' to {location}, replaying {len(self._queue)} queued operation(s)")

        self._replaying = True
        try:
            for operation in self._queue.drain():
                try:
                    operation.replay(store)
                except Exception:
                    logger.exception(f"Replayed {operation} raised for alias '{self.alias}'")
        finally:
            self._replaying = False
        self._settled.set()

    def _mark_failed(self, error: BaseException) -> None:
        self._error = error
        self._state = ResolutionState.FAILED
        logger.warning(f"Resolution failed for alias '{self.alias}': {error}")

        notified = discarded = 0
        for operation in self._queue.drain():
            callback = operation.failure_callback()
            if callback is None:
                discarded += 1
                continue
            notified += 1
            try:
                callback(error)
            except Exception:
                logger.exception(f"Failure callback of {operation} raised for alias '{self.alias}'")
        if discarded:
            logger.warning(f"Discarded {discarded} queued operation(s) without callback for alias '{self.alias}'")
        logger.debug(f"Notified {notified} queued operation(s) of failure for alias '{self.alias}'")
        self._settled.set()

    def __repr__(self):
        return (f"AliasedStorage(alias={self.alias!r}, state={self._state.name}, "
                f"location={self._location!r}, pending={len(self._queue)})")
