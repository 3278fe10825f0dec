"""File-backed token cache.

Each key maps to one JSON file named after the key digest under the cache
directory. Files hold secrets and are written with 0600 permissions.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from kubeoidc.core.tokencache.key import TokenCacheKey
from kubeoidc.models.oidc import TokenSet
from kubeoidc.utils.files import SECRET_FILE_MODE, atomic_write_text, ensure_private_dir

logger = logging.getLogger(__name__)


class TokenCacheError(RuntimeError):
    """Raised when a cache entry cannot be found, read or written."""


class TokenCacheInterface(Protocol):
    def find_by_key(self, cache_dir: Path, key: TokenCacheKey) -> TokenSet: ...

    def save(self, cache_dir: Path, key: TokenCacheKey, token_set: TokenSet) -> None: ...


class TokenCacheRepository:
    """Reads and writes token sets under a cache directory."""

    def find_by_key(self, cache_dir: Path, key: TokenCacheKey) -> TokenSet:
        path = self.entry_path(cache_dir, key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise TokenCacheError(f"no token cache at {path}") from exc
        except OSError as exc:
            raise TokenCacheError(f"could not read token cache {path}: {exc}") from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TokenCacheError(f"invalid json in token cache {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise TokenCacheError(f"token cache {path} must be a JSON object")
        try:
            return TokenSet.model_validate(payload)
        except ValidationError as exc:
            raise TokenCacheError(f"invalid token cache {path}: {exc}") from exc

    def save(self, cache_dir: Path, key: TokenCacheKey, token_set: TokenSet) -> None:
        path = self.entry_path(cache_dir, key)
        data = json.dumps(token_set.model_dump(mode="json"), indent=2, sort_keys=True)
        try:
            ensure_private_dir(cache_dir)
            atomic_write_text(path, data + "\n", mode=SECRET_FILE_MODE)
        except OSError as exc:
            raise TokenCacheError(f"could not write token cache {path}: {exc}") from exc
        logger.debug("wrote token cache %s", path)

    def clear(self, cache_dir: Path) -> int:
        """Delete every cache entry under ``cache_dir``. Returns the count."""
        if not cache_dir.is_dir():
            return 0
        removed = 0
        for entry in sorted(cache_dir.iterdir()):
            if not entry.is_file() or entry.name.startswith("."):
                continue
            entry.unlink(missing_ok=True)
            removed += 1
        return removed

    @staticmethod
    def entry_path(cache_dir: Path, key: TokenCacheKey) -> Path:
        return cache_dir / key.digest()
