"""
Deferred operations recorded on a handle before its backend exists.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from aliasstore.io.constants import ERROR_EVENT, STORAGE_CAPABILITIES

logger = logging.getLogger(__name__)


class DeferredOperation:
    """A capability call recorded verbatim for later replay or failure notification."""

    def __init__(self, capability: str, args: Tuple[Any, ...], kwargs: Optional[Dict[str, Any]] = None):
        self.capability = capability
        self.args = args
        self.kwargs = kwargs or {}
        self.executed = False

    @property
    def is_subscription(self) -> bool:
        return self.capability == "on"

    @property
    def is_error_subscription(self) -> bool:
        if not self.is_subscription:
            return False
        event_name = self.args[0] if self.args else self.kwargs.get("event_name")
        return event_name == ERROR_EVENT

    def failure_callback(self) -> Optional[Callable[..., Any]]:
        """
        The callable to notify when resolution fails, if any.

        Error listeners and trailing completion callbacks qualify; listeners
        for other events do not.
        """
        if self.is_subscription:
            if not self.is_error_subscription:
                return None
            candidate = self.kwargs.get("listener", self.args[-1] if self.args else None)
        elif "callback" in self.kwargs:
            candidate = self.kwargs["callback"]
        else:
            candidate = self.args[-1] if self.args else None
        return candidate if callable(candidate) else None

    def replay(self, target: Any) -> Any:
        """Invoke the recorded call on the target. Each operation runs at most once."""
        if self.executed:
            raise RuntimeError(f"Deferred operation already executed: {self}")
        self.executed = True
        return getattr(target, self.capability)(*self.args, **self.kwargs)

    def __repr__(self):
        return f"DeferredOperation(capability={self.capability}, args={len(self.args)}, kwargs={sorted(self.kwargs)})"


class OperationQueue:
    """Ordered queue of deferred operations for a single handle."""

    def __init__(self):
        self._operations: List[DeferredOperation] = []

    def append(self, capability: str, args: Tuple[Any, ...],
               kwargs: Optional[Dict[str, Any]] = None) -> DeferredOperation:
        if capability not in STORAGE_CAPABILITIES:
            raise ValueError(f"Unknown storage capability: {capability}")
        operation = DeferredOperation(capability, args, kwargs)
        self._operations.append(operation)
        logger.debug(f"Queued {operation} at position {len(self._operations)}")
        return operation

    def drain(self) -> Iterator[DeferredOperation]:
        """
        Yield queued operations in insertion order, removing each before it is yielded.

        Operations appended while draining are yielded too.
        """
        while self._operations:
            yield self._operations.pop(0)

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[DeferredOperation]:
        return iter(list(self._operations))

    def __repr__(self):
        return f"OperationQueue(pending={len(self._operations)})"
