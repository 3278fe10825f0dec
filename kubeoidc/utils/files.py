"""Filesystem helpers for atomic, permission-aware writes."""

from __future__ import annotations

import os
import platform
import stat
from pathlib import Path

SECRET_FILE_MODE = 0o600
SECRET_DIR_MODE = 0o700


def atomic_write_text(path: Path, data: str, *, mode: int | None = None) -> None:
    """Atomically replace ``path`` with ``data``.

    The temporary file is created with ``mode`` before any content is
    written, so secrets never sit in a world-readable file. Without ``mode``
    an existing file keeps its permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode is None and path.exists():
        mode = stat.S_IMODE(path.stat().st_mode)
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")

    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
    fd = os.open(tmp_path, flags, mode if mode is not None else 0o666)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            set_secure_permissions(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    _fsync_directory(path.parent)


def ensure_private_dir(path: Path) -> None:
    """Create ``path`` (and parents) readable only by the owner."""
    path.mkdir(mode=SECRET_DIR_MODE, parents=True, exist_ok=True)


def set_secure_permissions(path: Path, mode: int = SECRET_FILE_MODE) -> None:
    """Set file permissions on POSIX systems; no-op on Windows."""
    if platform.system() == "Windows":
        return
    os.chmod(path, mode)


def _fsync_directory(path: Path) -> None:
    """Best-effort fsync on a directory after atomic replace."""
    try:
        fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
