"""
Core module for aliasstore.

Contains the aliased storage handle, its resolution cache, the factory and
the error taxonomy.
"""

from aliasstore.core.errors import (
    AliasStorageError,
    AliasResolutionError,
    InvalidAliasError,
    ResolutionFailedError,
    NotReadyError,
    PermanentFailureError
)
from aliasstore.core.config import AliasStorageConfig
from aliasstore.core.resolution_cache import ResolutionCache
from aliasstore.core.deferred import DeferredOperation, OperationQueue
from aliasstore.core.proxy import AliasedStorage, ResolutionState, validate_location
from aliasstore.core.factory import AliasStorageFactory, create, create_cached
from aliasstore.core.alias_resolver import AliasResolver

__all__ = [
    'AliasStorageError',
    'AliasResolutionError',
    'InvalidAliasError',
    'ResolutionFailedError',
    'NotReadyError',
    'PermanentFailureError',
    'AliasStorageConfig',
    'ResolutionCache',
    'DeferredOperation',
    'OperationQueue',
    'AliasedStorage',
    'ResolutionState',
    'validate_location',
    'AliasStorageFactory',
    'create',
    'create_cached',
    'AliasResolver',
]
