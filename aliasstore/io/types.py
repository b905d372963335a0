# aliasstore/io/types.py
import os
from typing import Any, Awaitable, Callable, Optional, TypeAlias, Union
import numpy as np

# Real locations handed to storage constructors
Location: TypeAlias = Union[str, os.PathLike]

# Completion callback: first argument is an error or None
Callback: TypeAlias = Callable[..., Any]
OptionalCallback: TypeAlias = Optional[Callback]

# Resolver: alias -> location, plain or awaitable
Resolver: TypeAlias = Callable[[str], Union[Location, None, Awaitable[Optional[Location]]]]

# Storage constructor: called as constructor(location, **options)
StorageConstructor: TypeAlias = Callable[..., Any]

ByteData: TypeAlias = Union[bytes, bytearray, memoryview]

# In-memory byte buffers held by MemoryStorageBackend
ByteArray: TypeAlias = np.ndarray
