# aliasstore/io/__init__.py
"""
I/O module for aliasstore.

Provides the random access storage interface and its bundled implementations,
along with related types and constants.
"""

# Direct imports - ImportError will propagate if components are missing
from .types import ByteArray, ByteData, Callback, Location, Resolver, StorageConstructor
from .constants import (
    STORAGE_CAPABILITIES,
    ERROR_EVENT,
    DEFAULT_BACKEND,
    DEFAULT_CACHE_SIZE
)
from .events import EventEmitter
from .storage_backend import (
    RandomAccessStorage,
    FileStorageBackend,
    MemoryStorageBackend,
    StorageStat,
    StorageError,
    StorageClosedError,
    StorageRangeError,
    create_backend
)

__all__ = [
    # Types
    'ByteArray',
    'ByteData',
    'Callback',
    'Location',
    'Resolver',
    'StorageConstructor',
    # Constants
    'STORAGE_CAPABILITIES',
    'ERROR_EVENT',
    'DEFAULT_BACKEND',
    'DEFAULT_CACHE_SIZE',
    # Interfaces
    'EventEmitter',
    'RandomAccessStorage',
    # Implementations
    'FileStorageBackend',
    'MemoryStorageBackend',
    'StorageStat',
    'create_backend',
    # Errors
    'StorageError',
    'StorageClosedError',
    'StorageRangeError',
]
