"""
Error taxonomy for aliased storage handles.

Resolution errors (InvalidAliasError, ResolutionFailedError) are never raised
at the call site; they are delivered to queued callbacks and "error"
listeners. NotReadyError and PermanentFailureError are raised synchronously
because they indicate a handle being used incorrectly.
"""

from typing import Optional


class AliasStorageError(Exception):
    """Base class for all aliasstore errors."""


class AliasResolutionError(AliasStorageError):
    """Resolving an alias to a real location did not succeed."""

    def __init__(self, message: str, alias: Optional[str] = None):
        super().__init__(message)
        self.alias = alias


class InvalidAliasError(AliasResolutionError):
    """The resolver returned an empty or wrong-typed location."""

    def __init__(self, alias: Optional[str] = None, value: object = None):
        super().__init__(
            f"Invalid filename alias. Alias must be non-empty string. "
            f"Resolver returned {value!r} for alias {alias!r}",
            alias=alias
        )
        self.value = value


class ResolutionFailedError(AliasResolutionError):
    """The resolver raised, was cancelled, or the backend could not be built."""


class NotReadyError(AliasStorageError):
    """An attribute outside the storage capabilities was accessed while pending."""

    def __init__(self, name: str, alias: Optional[str] = None):
        super().__init__(f"Aliased store is not ready yet: cannot access '{name}' on alias {alias!r}")
        self.name = name
        self.alias = alias


class PermanentFailureError(AliasStorageError):
    """The handle was used after its alias resolution failed."""

    def __init__(self, alias: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(f"Store not setup: Alias resolution failed! (alias {alias!r}: {cause})")
        self.alias = alias
        self.cause = cause
