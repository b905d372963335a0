"""aliasstore: random access storage handles for aliases resolved in the background."""

__version__ = "0.1.0"

# Import simplified interface
from aliasstore.core import (
    AliasedStorage,
    AliasResolver,
    AliasStorageConfig,
    AliasStorageFactory,
    ResolutionState,
    create,
    create_cached
)
from aliasstore.io import FileStorageBackend, MemoryStorageBackend

__all__ = [
    'create',
    'create_cached',
    'AliasedStorage',
    'AliasResolver',
    'AliasStorageConfig',
    'AliasStorageFactory',
    'ResolutionState',
    'FileStorageBackend',
    'MemoryStorageBackend',
]
