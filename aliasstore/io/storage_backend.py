# aliasstore/io/storage_backend.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Type, Union

import logging
import os
import numpy as np

from .constants import ERROR_EVENT
from .events import EventEmitter
from .types import ByteArray, ByteData, Location, OptionalCallback


logger = logging.getLogger(__name__)

# Marker for operations whose callback only receives the error argument
_NO_RESULT = object()


class StorageError(Exception):
    """Base class for errors reported by storage backends."""


class StorageClosedError(StorageError):
    """Raised when an operation is issued after close or destroy."""


class StorageRangeError(StorageError):
    """Raised when a read cannot be satisfied by the stored data."""


@dataclass(frozen=True)
class StorageStat:
    """Result of a stat operation."""
    size: int


class RandomAccessStorage(EventEmitter, ABC):
    """
    Abstract base class for callback-style random access storage.

    The public surface (write, read, stat, delete, close, destroy, on) is
    implemented once here. Subclasses only provide the synchronous hooks
    (_open, _write, _read, _stat, _delete, _close, _destroy).

    Completion callbacks receive ``None`` or the error as first argument,
    followed by the result for read and stat. When a failing operation has
    no callback the error is emitted as an "error" event instead, and logged
    if nobody listens.

    Exceptions raised by completion callbacks or event listeners are never
    storage errors: they propagate to the caller of the operation, after the
    state change that triggered them has been applied.
    """

    def __init__(self, location: Optional[Location] = None):
        super().__init__()
        self.location = os.fspath(location) if location is not None else None
        self.opened = False
        self.closed = False
        self.destroyed = False

    # --- Hooks ---

    @abstractmethod
    def _open(self) -> None:
        """Prepare the underlying medium. Called once, before the first operation."""
        pass

    @abstractmethod
    def _write(self, offset: int, data: bytes) -> None:
        pass

    @abstractmethod
    def _read(self, offset: int, length: int) -> bytes:
        pass

    @abstractmethod
    def _stat(self) -> StorageStat:
        pass

    @abstractmethod
    def _delete(self, offset: int, length: int) -> None:
        pass

    def _close(self) -> None:
        """Release resources. Default is a no-op."""
        pass

    def _destroy(self) -> None:
        """Remove the stored data. Default is a no-op."""
        pass

    # --- Public capability surface ---

    def write(self, offset: int, data: ByteData, callback: OptionalCallback = None) -> None:
        """Write bytes at an offset."""
        self._run("write", callback, self._checked_write, offset, data)

    def read(self, offset: int, length: int, callback: OptionalCallback = None) -> None:
        """Read ``length`` bytes from an offset; the callback receives (error, bytes)."""
        self._run("read", callback, self._checked_read, offset, length)

    def stat(self, callback: OptionalCallback = None) -> None:
        """The callback receives (error, StorageStat)."""
        self._run("stat", callback, self._stat)

    def delete(self, offset: int, length: int, callback: OptionalCallback = None) -> None:
        """Delete a byte range."""
        self._run("delete", callback, self._checked_delete, offset, length)

    def close(self, callback: OptionalCallback = None) -> None:
        """Close the storage. Closing twice is not an error."""
        if self.closed:
            self._complete(callback, _NO_RESULT)
            return
        try:
            if self.opened:
                self._close()
        except Exception as e:
            self._report("close", callback, e)
            return
        self.closed = True
        logger.debug(f"{type(self).__name__}: closed {self.location}")
        self.emit("close")
        self._complete(callback, _NO_RESULT)

    def destroy(self, callback: OptionalCallback = None) -> None:
        """Close the storage and remove its data."""
        if self.destroyed:
            self._complete(callback, _NO_RESULT)
            return
        try:
            if self.opened and not self.closed:
                self._close()
            self._destroy()
        except Exception as e:
            self._report("destroy", callback, e)
            return
        if not self.closed:
            self.closed = True
            self.emit("close")
        self.destroyed = True
        logger.debug(f"{type(self).__name__}: destroyed {self.location}")
        self.emit("destroy")
        self._complete(callback, _NO_RESULT)

    # --- Internals ---

    def _checked_write(self, offset: int, data: ByteData) -> Any:
        self._check_range(offset, 0)
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Data must be bytes-like, got {type(data).__name__}")
        self._write(offset, bytes(data))
        return _NO_RESULT

    def _checked_read(self, offset: int, length: int) -> bytes:
        self._check_range(offset, length)
        return self._read(offset, length)

    def _checked_delete(self, offset: int, length: int) -> Any:
        self._check_range(offset, length)
        self._delete(offset, length)
        return _NO_RESULT

    @staticmethod
    def _check_range(offset: int, length: int) -> None:
        if offset < 0 or length < 0:
            raise StorageRangeError(f"Offset and length must be non-negative, got offset={offset}, length={length}")

    def _run(self, operation: str, callback: OptionalCallback, hook: Callable[..., Any], *args) -> None:
        if self.closed:
            state = "destroyed" if self.destroyed else "closed"
            self._report(operation, callback, StorageClosedError(f"Cannot {operation}: storage is {state}"))
            return
        if not self.opened:
            try:
                self._open()
            except Exception as e:
                self._report(operation, callback, e)
                return
            self.opened = True
            logger.debug(f"{type(self).__name__}: opened {self.location}")
            self.emit("open")
        try:
            result = hook(*args)
        except Exception as e:
            self._report(operation, callback, e)
            return
        # Outside the try: exceptions raised by callbacks and listeners are not storage errors
        self._complete(callback, result)

    @staticmethod
    def _complete(callback: OptionalCallback, result: Any) -> None:
        if callback is None:
            return
        if result is _NO_RESULT:
            callback(None)
        else:
            callback(None, result)

    def _report(self, operation: str, callback: OptionalCallback, error: Exception) -> None:
        if callback is not None:
            logger.debug(f"{type(self).__name__}: {operation} failed on {self.location}: {error}")
            callback(error)
        elif not self.emit(ERROR_EVENT, error):
            logger.error(f"{type(self).__name__}: unhandled {operation} error on {self.location}: {error}")


class FileStorageBackend(RandomAccessStorage):
    """
    Storage backend over a single local file.

    This is the default constructor used by the alias factory. The file is
    opened lazily on the first operation and created if missing (when
    writable), including its parent directories.
    """

    def __init__(self, location: Location, directory: Optional[Union[str, Path]] = None,
                 truncate: bool = False, readable: bool = True, writable: bool = True):
        path = Path(location)
        if directory is not None:
            path = Path(directory) / path
        super().__init__(path)
        self.path = path
        self.truncate = truncate
        self.readable = readable
        self.writable = writable
        self._handle = None

    def _open(self) -> None:
        if self.writable:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            mode = "w+b" if self.truncate or not self.path.exists() else "r+b"
        else:
            mode = "rb"
        self._handle = open(self.path, mode)

    def _write(self, offset: int, data: bytes) -> None:
        if not self.writable:
            raise StorageError(f"Storage is not writable: {self.path}")
        self._handle.seek(offset)
        self._handle.write(data)
        self._handle.flush()

    def _read(self, offset: int, length: int) -> bytes:
        if not self.readable:
            raise StorageError(f"Storage is not readable: {self.path}")
        self._handle.seek(offset)
        data = self._handle.read(length)
        if len(data) < length:
            raise StorageRangeError(f"Could not satisfy length: wanted {length} bytes at offset {offset} of {self.path}")
        return data

    def _stat(self) -> StorageStat:
        return StorageStat(size=os.fstat(self._handle.fileno()).st_size)

    def _delete(self, offset: int, length: int) -> None:
        # Only a range reaching the end of file can be released
        size = self._stat().size
        if offset < size and offset + length >= size:
            self._handle.truncate(offset)
            logger.debug(f"FileStorageBackend: truncated {self.path} to {offset} bytes")

    def _close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _destroy(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.debug(f"FileStorageBackend: removed {self.path}")


class MemoryStorageBackend(RandomAccessStorage):
    """
    Storage backend that keeps its bytes in a NumPy uint8 buffer.

    The buffer grows on writes past the end. Each instance has its own
    buffer; the location is only kept for reference.
    """

    def __init__(self, location: Optional[Location] = None, initial: Optional[ByteData] = None):
        super().__init__(location)
        self._buffer: ByteArray = np.zeros(0, dtype=np.uint8)
        if initial is not None:
            self._buffer = np.frombuffer(bytes(initial), dtype=np.uint8).copy()

    def _open(self) -> None:
        pass

    def _write(self, offset: int, data: bytes) -> None:
        end = offset + len(data)
        if end > self._buffer.size:
            grown = np.zeros(end, dtype=np.uint8)
            grown[:self._buffer.size] = self._buffer
            self._buffer = grown
        self._buffer[offset:end] = np.frombuffer(data, dtype=np.uint8)

    def _read(self, offset: int, length: int) -> bytes:
        if offset + length > self._buffer.size:
            raise StorageRangeError(f"Could not satisfy length: wanted {length} bytes at offset {offset}, "
                                    f"size is {self._buffer.size}")
        return self._buffer[offset:offset + length].tobytes()

    def _stat(self) -> StorageStat:
        return StorageStat(size=int(self._buffer.size))

    def _delete(self, offset: int, length: int) -> None:
        size = self._buffer.size
        if offset >= size:
            return
        if offset + length >= size:
            self._buffer = self._buffer[:offset].copy()
        else:
            self._buffer[offset:offset + length] = 0

    def _destroy(self) -> None:
        self._buffer = np.zeros(0, dtype=np.uint8)


def create_backend(backend_type: str = "file") -> Type[RandomAccessStorage]:
    """
    Return the storage constructor for a string identifier.

    Args:
        backend_type: String identifier for the backend type.
            - "file" or "disk": FileStorageBackend
            - "memory" or "fake": MemoryStorageBackend

    Returns:
        A RandomAccessStorage subclass, called as constructor(location, **options)

    Raises:
        ValueError: If the backend_type is not recognized
    """
    backend_type = backend_type.lower()

    if backend_type in ("file", "disk"):
        return FileStorageBackend
    elif backend_type in ("memory", "fake"):
        return MemoryStorageBackend
    else:
        raise ValueError(f"Unsupported backend type: {backend_type}. "
                         f"Supported types: file, memory")
