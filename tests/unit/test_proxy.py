"""
Unit tests for AliasedStorage: queueing, replay and failure handling.
"""

import asyncio
import re
import pytest
from pathlib import Path
from unittest.mock import Mock, call

from aliasstore import create
from aliasstore.core.errors import (
    InvalidAliasError,
    NotReadyError,
    PermanentFailureError,
    ResolutionFailedError
)
from aliasstore.core.proxy import AliasedStorage, ResolutionState, validate_location
from aliasstore.io.storage_backend import FileStorageBackend, MemoryStorageBackend


class TestValidateLocation:

    def test_accepts_strings_and_paths(self):
        assert validate_location("a", "/data/real.txt") == "/data/real.txt"
        assert validate_location("a", Path("/data/real.txt")) == str(Path("/data/real.txt"))

    @pytest.mark.parametrize("value", [None, "", 42, b"/bytes", ["/list"]])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidAliasError, match=r"Invalid filename alias\."):
            validate_location("a", value)


# --- Scenarios ---

@pytest.mark.asyncio
async def test_reads_from_aliased_file(tests_data_dir, delayed_resolver):
    resolver = delayed_resolver(
        lambda name: str(tests_data_dir / "test.txt") if name == "alias.txt" else name,
        delay=0.05
    )
    raa = create(resolver)
    file = raa("alias.txt", writable=False)
    results = []
    file.read(2, 4, lambda err, data=None: results.append((err, data)))

    assert file.state is ResolutionState.PENDING
    assert results == []

    assert await file.wait_resolved() is ResolutionState.RESOLVED
    assert results == [(None, b"test")]
    assert isinstance(file.backend, FileStorageBackend)
    file.close()


@pytest.mark.asyncio
async def test_writes_to_aliased_memory_storage():
    resolver = Mock(return_value="all.txt")
    raa = create(resolver, MemoryStorageBackend)
    file = raa("a-file")
    results = []

    def on_write(err):
        results.append(("write", err))
        file.read(0, 4, lambda err, data=None: results.append(("read", err, data)))

    file.write(0, b"Some words", on_write)
    await file.wait_resolved()

    assert results == [("write", None), ("read", None, b"Some")]
    resolver.assert_called_once_with("a-file")
    assert file.location == "all.txt"


@pytest.mark.asyncio
async def test_invalid_alias_reaches_callback():
    raa = create(Mock(return_value=None), MemoryStorageBackend)
    file = raa("a-file")
    errors = []
    file.write(0, b"Text", lambda err, *rest: errors.append(err))

    assert await file.wait_resolved() is ResolutionState.FAILED
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidAliasError)
    assert re.search(r"Invalid filename alias\.", str(errors[0]))
    assert file.error is errors[0]


@pytest.mark.asyncio
async def test_methods_fail_after_resolution_failure():
    raa = create(Mock(return_value=None), MemoryStorageBackend)
    file = raa("a-file")
    raised = []

    def on_write(err):
        try:
            file.read(0, 2, lambda *args: None)
        except PermanentFailureError as e:
            raised.append(e)

    file.write(0, b"Text", on_write)
    await file.wait_resolved()

    assert len(raised) == 1
    assert isinstance(raised[0].cause, InvalidAliasError)
    with pytest.raises(PermanentFailureError, match="Alias resolution failed"):
        file.stat(lambda *args: None)
    with pytest.raises(PermanentFailureError):
        file.on("error", lambda err: None)
    with pytest.raises(PermanentFailureError):
        file.opened
    with pytest.raises(PermanentFailureError):
        file.anything_else


@pytest.mark.asyncio
async def test_error_listener_called_on_failure():
    raa = create(Mock(return_value=None), MemoryStorageBackend)
    file = raa("a-file")
    listener = Mock()
    write_callback = Mock()
    file.on("error", listener)
    file.write(0, b"Burn", write_callback)

    await file.wait_resolved()

    listener.assert_called_once()
    assert isinstance(listener.call_args[0][0], InvalidAliasError)
    write_callback.assert_called_once_with(listener.call_args[0][0])


# --- Pending behaviour ---

@pytest.mark.asyncio
async def test_pending_handle_queues_without_side_effects(mock_backend):
    backend, storage = mock_backend
    gate = asyncio.Event()

    async def resolver(name):
        await gate.wait()
        return "/data/real.bin"

    file = create(resolver, storage)("alias")
    callback = Mock()
    assert file.write(0, b"a", callback) is None
    assert file.read(0, 1, callback) is None

    await asyncio.sleep(0)
    storage.assert_not_called()
    callback.assert_not_called()
    assert file.pending_operations == 2

    gate.set()
    await file.wait_resolved()
    assert file.pending_operations == 0


@pytest.mark.asyncio
async def test_status_flags_while_pending():
    file = create(Mock(return_value="mem"), MemoryStorageBackend)("alias")
    assert file.opened is False
    assert file.closed is False
    assert file.destroyed is False

    file.write(0, b"x")
    await file.wait_resolved()
    assert file.opened is True


@pytest.mark.asyncio
async def test_unknown_attribute_while_pending_is_not_ready():
    file = create(Mock(return_value="mem"), MemoryStorageBackend)("alias")
    with pytest.raises(NotReadyError, match="not ready"):
        file.listener_count
    with pytest.raises(AttributeError):
        file._private_thing

    await file.wait_resolved()
    # Forwarded once the backend exists
    assert file.listener_count("error") == 0


@pytest.mark.asyncio
async def test_sync_value_still_settles_asynchronously():
    resolver = Mock(return_value="mem")
    file = create(resolver, MemoryStorageBackend)("alias")
    resolver.assert_called_once_with("alias")
    assert file.state is ResolutionState.PENDING


# --- Replay ---

@pytest.mark.asyncio
async def test_replay_preserves_order(mock_backend, delayed_resolver):
    backend, storage = mock_backend
    file = create(delayed_resolver(lambda name: "/data/real.bin"), storage)("alias")

    done = Mock()
    listener = Mock()
    file.write(0, b"one", done)
    file.on("close", listener)
    file.read(0, 3, done)
    file.stat(done)
    file.delete(0, 1, done)
    file.close(done)
    file.destroy(done)

    await file.wait_resolved()

    storage.assert_called_once_with("/data/real.bin")
    assert backend.method_calls == [
        call.write(0, b"one", done),
        call.on("close", listener),
        call.read(0, 3, done),
        call.stat(done),
        call.delete(0, 1, done),
        call.close(done),
        call.destroy(done),
    ]


@pytest.mark.asyncio
async def test_calls_after_resolution_are_forwarded(mock_backend):
    backend, storage = mock_backend
    backend.write.return_value = "written"
    file = create(Mock(return_value="/data/real.bin"), storage)("alias")
    await file.wait_resolved()

    assert file.write(0, b"x", callback=None) == "written"
    backend.write.assert_called_once_with(0, b"x", callback=None)
    assert file.pending_operations == 0


@pytest.mark.asyncio
async def test_calls_made_during_replay_run_after_queued_ones():
    order = []

    class RecordingBackend(MemoryStorageBackend):
        def write(self, offset, data, callback=None):
            order.append(("write", data))
            super().write(offset, data, callback)

    file = create(Mock(return_value="mem"), RecordingBackend)("alias")
    file.write(0, b"first", lambda err: file.write(0, b"nested"))
    file.write(0, b"second")

    await file.wait_resolved()
    assert order == [("write", b"first"), ("write", b"second"), ("write", b"nested")]


@pytest.mark.asyncio
async def test_replay_continues_after_exception(mock_backend, caplog):
    backend, storage = mock_backend
    backend.write.side_effect = RuntimeError("backend bug")
    file = create(Mock(return_value="/data/real.bin"), storage)("alias")
    file.write(0, b"x")
    file.read(0, 1)

    await file.wait_resolved()

    backend.write.assert_called_once()
    backend.read.assert_called_once_with(0, 1)
    assert "backend bug" in caplog.text


@pytest.mark.asyncio
async def test_options_are_forwarded(mock_backend):
    backend, storage = mock_backend
    file = create(Mock(return_value="/data/real.bin"), storage)("alias", truncate=True)
    await file.wait_resolved()
    storage.assert_called_once_with("/data/real.bin", truncate=True)


# --- Failure paths ---

@pytest.mark.asyncio
async def test_rejecting_resolver(mock_backend):
    backend, storage = mock_backend

    async def resolver(name):
        raise LookupError(f"no such alias {name}")

    file = create(resolver, storage)("missing")
    callback = Mock()
    close_listener = Mock()
    file.read(0, 4, callback)
    file.on("close", close_listener)
    file.write(0, b"no callback")

    assert await file.wait_resolved() is ResolutionState.FAILED

    error = callback.call_args[0][0]
    assert isinstance(error, ResolutionFailedError)
    assert isinstance(error.__cause__, LookupError)
    assert error.alias == "missing"
    close_listener.assert_not_called()
    storage.assert_not_called()
    assert file.pending_operations == 0


@pytest.mark.asyncio
async def test_resolver_raising_synchronously_does_not_escape():
    def resolver(name):
        raise KeyError(name)

    file = create(resolver, MemoryStorageBackend)("alias")
    callback = Mock()
    file.stat(callback)
    assert file.state is ResolutionState.PENDING

    await file.wait_resolved()
    assert isinstance(callback.call_args[0][0], ResolutionFailedError)


@pytest.mark.asyncio
async def test_cancelled_resolution_fails():
    pending = asyncio.get_running_loop().create_future()
    file = create(lambda name: pending, MemoryStorageBackend)("alias")
    callback = Mock()
    file.read(0, 1, callback)

    pending.cancel()
    await file.wait_resolved()

    assert file.state is ResolutionState.FAILED
    assert "cancelled" in str(callback.call_args[0][0])


@pytest.mark.asyncio
async def test_backend_construction_failure(caplog):
    storage = Mock(side_effect=OSError("disk on fire"))
    file = create(Mock(return_value="/data/real.bin"), storage)("alias")
    callback = Mock()
    file.write(0, b"x", callback)

    await file.wait_resolved()

    error = callback.call_args[0][0]
    assert isinstance(error, ResolutionFailedError)
    assert isinstance(error.__cause__, OSError)
    assert file.state is ResolutionState.FAILED


@pytest.mark.asyncio
async def test_failure_callbacks_each_called_once():
    file = create(Mock(return_value=""), MemoryStorageBackend)("alias")
    callbacks = [Mock() for _ in range(5)]
    for i, callback in enumerate(callbacks):
        file.write(i, b"x", callback)

    await file.wait_resolved()
    await asyncio.sleep(0)
    for callback in callbacks:
        callback.assert_called_once()


def test_requires_running_loop():
    resolver = Mock(return_value="mem")
    raa = create(resolver, MemoryStorageBackend)
    with pytest.raises(RuntimeError):
        raa("alias")
    resolver.assert_not_called()


def test_resolved_handle_from_location():
    file = AliasedStorage.from_location("alias", "mem", MemoryStorageBackend)
    assert file.state is ResolutionState.RESOLVED
    results = []
    file.write(0, b"ready", lambda err: results.append(err))
    assert results == [None]


# --- Handle attributes ---

@pytest.mark.asyncio
async def test_location_attributes_follow_not_ready_rule(tmp_path):
    file = create(Mock(return_value="real.bin"))("alias", directory=tmp_path)

    for name in ("location", "resolved_location", "backend"):
        with pytest.raises(NotReadyError, match="not ready"):
            getattr(file, name)

    await file.wait_resolved()

    # location is the backend's own, resolved against the directory option
    assert file.location == file.backend.location == str(tmp_path / "real.bin")
    assert file.resolved_location == "real.bin"
    file.close()


@pytest.mark.asyncio
async def test_resolution_attributes_fail_after_failure():
    file = create(Mock(return_value=None), MemoryStorageBackend)("alias")
    await file.wait_resolved()

    for name in ("location", "resolved_location", "backend"):
        with pytest.raises(PermanentFailureError):
            getattr(file, name)
    assert isinstance(file.error, InvalidAliasError)


@pytest.mark.asyncio
async def test_subscriptions_chain_in_every_state():
    file = create(Mock(return_value="mem"), MemoryStorageBackend)("alias")
    first, second = Mock(), Mock()

    assert file.on("open", first).on("close", second) is file
    assert file.pending_operations == 2

    await file.wait_resolved()
    assert file.on("destroy", Mock()) is file
    assert file.listener_count("open") == 1
    assert file.listener_count("close") == 1
    assert file.listener_count("destroy") == 1
