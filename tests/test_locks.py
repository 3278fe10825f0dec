"""Tests for the cross-process file mutex."""

from __future__ import annotations

import json
import os
import threading
import time
from pathlib import Path

import pytest

from kubeoidc.core.context import RunContext
from kubeoidc.utils.locks import FileMutex, LockError, LockHandle, clear_lock, lock_path


def _write_lock(path: Path, pid: int, token: str = "other") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"pid": pid, "name": path.stem, "created_at": time.time(), "token": token}),
        encoding="utf-8",
    )


def test_acquire_and_release(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path / ".lock")
    handle = mutex.acquire(RunContext(), "get-token")

    assert handle.path == tmp_path / ".lock" / "get-token.lock"
    payload = json.loads(handle.path.read_text())
    assert payload["pid"] == os.getpid()
    assert payload["token"] == handle.token

    mutex.release(handle)
    assert handle.path.read_text() == ""


def test_acquire_blocks_until_deadline(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path, poll_interval=0.01)
    held = mutex.acquire(RunContext(), "get-token")

    with pytest.raises(LockError, match="deadline exceeded"):
        FileMutex(tmp_path, poll_interval=0.01).acquire(RunContext(timeout=0.1), "get-token")

    assert json.loads(held.path.read_text())["token"] == held.token
    mutex.release(held)


def test_acquire_stops_on_cancel(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path, poll_interval=0.01)
    held = mutex.acquire(RunContext(), "get-token")
    ctx = RunContext()
    ctx.cancel()

    with pytest.raises(LockError, match="cancelled"):
        mutex.acquire(ctx, "get-token")
    mutex.release(held)


def test_acquire_waits_for_holder_to_release(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path, poll_interval=0.01)
    held = mutex.acquire(RunContext(), "get-token")
    timer = threading.Timer(0.1, mutex.release, args=(held,))
    timer.start()
    try:
        handle = mutex.acquire(RunContext(timeout=5), "get-token")
    finally:
        timer.join()

    assert handle.token != held.token
    mutex.release(handle)


def test_distinct_names_do_not_contend(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path)
    first = mutex.acquire(RunContext(), "alpha")
    second = mutex.acquire(RunContext(timeout=0.1), "bravo")
    mutex.release(second)
    mutex.release(first)


def test_leftover_file_of_dead_holder_does_not_block(tmp_path: Path) -> None:
    path = tmp_path / "get-token.lock"
    _write_lock(path, pid=999999)

    mutex = FileMutex(tmp_path)
    handle = mutex.acquire(RunContext(timeout=1), "get-token")

    assert json.loads(path.read_text())["pid"] == os.getpid()
    assert handle.path == path
    mutex.release(handle)


def test_at_most_one_holder_across_threads(tmp_path: Path) -> None:
    holders = 0
    max_holders = 0
    guard = threading.Lock()
    errors: list[Exception] = []

    def worker() -> None:
        nonlocal holders, max_holders
        mutex = FileMutex(tmp_path, poll_interval=0.005)
        try:
            for _ in range(5):
                handle = mutex.acquire(RunContext(timeout=10), "get-token")
                with guard:
                    holders += 1
                    max_holders = max(max_holders, holders)
                time.sleep(0.002)
                with guard:
                    holders -= 1
                mutex.release(handle)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert max_holders == 1


def test_lock_file_removed_between_open_and_lock(tmp_path: Path) -> None:
    other = FileMutex(tmp_path)
    taken: list[LockHandle] = []

    class InterleavedMutex(FileMutex):
        def _open(self, path: Path) -> int:
            fd = super()._open(path)
            if not taken:
                # Another process clears the unheld file and takes a fresh one.
                assert clear_lock(tmp_path, "get-token") is True
                taken.append(other.acquire(RunContext(), "get-token"))
            return fd

    with pytest.raises(LockError, match="deadline exceeded"):
        InterleavedMutex(tmp_path, poll_interval=0.01).acquire(
            RunContext(timeout=0.1), "get-token"
        )

    assert json.loads(taken[0].path.read_text())["token"] == taken[0].token
    other.release(taken[0])


def test_release_is_idempotent(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path)
    handle = mutex.acquire(RunContext(), "get-token")
    mutex.release(handle)
    mutex.release(handle)

    again = mutex.acquire(RunContext(timeout=0.1), "get-token")
    mutex.release(again)


def test_release_of_unknown_handle_is_noop(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path)
    held = mutex.acquire(RunContext(), "get-token")

    FileMutex(tmp_path).release(LockHandle(name="get-token", path=held.path, token="mine"))

    assert json.loads(held.path.read_text())["token"] == held.token
    mutex.release(held)


def test_invalid_lock_name_rejected(tmp_path: Path) -> None:
    with pytest.raises(LockError, match="invalid lock name"):
        lock_path(tmp_path, "../escape")


def test_clear_lock_missing_returns_false(tmp_path: Path) -> None:
    assert clear_lock(tmp_path, "get-token") is False


def test_clear_lock_removes_unheld_file(tmp_path: Path) -> None:
    path = tmp_path / "get-token.lock"
    _write_lock(path, pid=999999)

    assert clear_lock(tmp_path, "get-token") is True
    assert not path.exists()


def test_clear_lock_requires_force_for_held_lock(tmp_path: Path) -> None:
    mutex = FileMutex(tmp_path)
    held = mutex.acquire(RunContext(), "get-token")

    with pytest.raises(LockError, match="--force") as exc_info:
        clear_lock(tmp_path, "get-token")
    assert f"pid={os.getpid()}" in str(exc_info.value)
    assert held.path.exists()

    assert clear_lock(tmp_path, "get-token", force=True) is True
    assert not held.path.exists()
    mutex.release(held)
