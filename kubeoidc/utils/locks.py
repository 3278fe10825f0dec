"""Cross-process named locks backed by ``flock`` on lock files."""

from __future__ import annotations

import fcntl
import json
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from kubeoidc.core.context import OperationCancelled, RunContext

logger = logging.getLogger(__name__)

_LOCK_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class LockError(RuntimeError):
    """Raised when a lock cannot be acquired, released or cleared."""


@dataclass(frozen=True)
class LockInfo:
    """Holder metadata written into the lock file while the lock is held."""

    pid: int
    name: str
    created_at: float
    token: str

    def to_json(self) -> str:
        return json.dumps(
            {
                "pid": self.pid,
                "name": self.name,
                "created_at": self.created_at,
                "token": self.token,
            },
            sort_keys=True,
        )


@dataclass(frozen=True)
class LockHandle:
    """Proof of a held lock; pass it back unchanged to ``release``."""

    name: str
    path: Path
    token: str


class MutexInterface(Protocol):
    def acquire(self, ctx: RunContext, name: str) -> LockHandle: ...

    def release(self, handle: LockHandle) -> None: ...


def _read_lock_info(path: Path) -> LockInfo | None:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError, ValueError):
        return None
    try:
        return LockInfo(
            pid=int(payload["pid"]),
            name=str(payload["name"]),
            created_at=float(payload["created_at"]),
            token=str(payload["token"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _describe_holder(path: Path) -> str:
    info = _read_lock_info(path)
    return f"pid={info.pid}" if info else "unknown holder"


def _try_flock(fd: int) -> bool:
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    return True


def _is_current_file(fd: int, path: Path) -> bool:
    """Whether ``fd`` still refers to the file at ``path``."""
    try:
        on_disk = os.stat(path)
    except FileNotFoundError:
        return False
    opened = os.fstat(fd)
    return (on_disk.st_dev, on_disk.st_ino) == (opened.st_dev, opened.st_ino)


def lock_path(lock_dir: Path, name: str) -> Path:
    if not _LOCK_NAME_RE.match(name):
        raise LockError(f"invalid lock name: {name!r}")
    return lock_dir / f"{name}.lock"


class FileMutex:
    """Named mutex shared by every process using the same lock directory.

    The lock is an exclusive ``flock`` on ``<lock_dir>/<name>.lock``. The
    kernel drops it when the holder exits, however it exits, so a crashed
    holder never leaves a lock behind. ``acquire`` polls every
    ``poll_interval`` seconds until the lock is free or the context is
    cancelled or past its deadline.
    """

    def __init__(self, lock_dir: Path, *, poll_interval: float = 0.1) -> None:
        self.lock_dir = lock_dir
        self.poll_interval = poll_interval
        self._held: dict[str, int] = {}

    def acquire(self, ctx: RunContext, name: str) -> LockHandle:
        path = lock_path(self.lock_dir, name)
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LockError(f"could not create lock directory {self.lock_dir}: {exc}") from exc

        token = uuid.uuid4().hex
        waiting_logged = False
        while True:
            fd = self._open(path)
            try:
                locked = _try_flock(fd)
                if locked and not _is_current_file(fd, path):
                    # The file was removed by `unlock` after we opened it.
                    logger.debug("lock file %s was replaced, retrying", path)
                    os.close(fd)
                    continue
            except OSError as exc:
                os.close(fd)
                raise LockError(f"could not lock {path}: {exc}") from exc

            if locked:
                self._record_holder(fd, LockInfo(os.getpid(), name, time.time(), token))
                self._held[token] = fd
                logger.debug("acquired lock %s", path)
                return LockHandle(name=name, path=path, token=token)

            os.close(fd)
            if not waiting_logged:
                logger.debug("waiting for lock %s held by %s", path, _describe_holder(path))
                waiting_logged = True
            try:
                ctx.sleep(self.poll_interval)
            except OperationCancelled as exc:
                raise LockError(f"could not acquire lock {name}: {exc}") from exc

    def release(self, handle: LockHandle) -> None:
        """Release a held lock. Releasing an unknown or released handle is a no-op."""
        fd = self._held.pop(handle.token, None)
        if fd is None:
            return
        try:
            os.ftruncate(fd, 0)
            fcntl.flock(fd, fcntl.LOCK_UN)
        except OSError as exc:
            raise LockError(f"could not release lock {handle.name}: {exc}") from exc
        finally:
            os.close(fd)
        logger.debug("released lock %s", handle.path)

    @staticmethod
    def _open(path: Path) -> int:
        try:
            return os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as exc:
            raise LockError(f"could not open lock file {path}: {exc}") from exc

    @staticmethod
    def _record_holder(fd: int, info: LockInfo) -> None:
        try:
            os.ftruncate(fd, 0)
            os.pwrite(fd, info.to_json().encode("utf-8"), 0)
        except OSError as exc:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
            raise LockError(f"could not write lock file: {exc}") from exc


def clear_lock(lock_dir: Path, name: str, force: bool = False) -> bool:
    """Remove a lock file. Returns True if one existed.

    Raises LockError if another process holds the lock and force=False.
    """
    path = lock_path(lock_dir, name)
    try:
        fd = os.open(path, os.O_RDWR)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise LockError(f"could not open lock file {path}: {exc}") from exc
    try:
        if not _try_flock(fd) and not force:
            raise LockError(
                f"Lock is held ({_describe_holder(path)}, name={name}). "
                "Use --force to remove it anyway."
            )
        path.unlink(missing_ok=True)
    finally:
        os.close(fd)
    return True
