"""Canonical serialization helpers for deterministic cache file names."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def canonicalize(value: Any) -> Any:
    """Return a recursively canonicalized value with deterministic ordering."""
    if isinstance(value, Mapping):
        return {str(k): canonicalize(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, list | tuple):
        return [canonicalize(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialize a value into canonical JSON."""
    return json.dumps(canonicalize(value), sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_digest(value: Any) -> str:
    """Compute sha256 digest from canonical serialization."""
    return hashlib.sha256(canonical_json(value).encode()).hexdigest()
