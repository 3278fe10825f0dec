"""Test helpers for building tokens, kubeconfigs and contexts."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import jwt
import yaml

from kubeoidc.core.context import RunContext

SIGNING_KEY = "kubeoidc-test-signing-key-0123456789abcdef"
ISSUER_URL = "https://accounts.google.com"
CLIENT_ID = "YOUR_CLIENT_ID"
CLIENT_SECRET = "YOUR_CLIENT_SECRET"


def expiry_in(delta: timedelta) -> datetime:
    """Return now + delta, truncated to whole seconds like a JWT exp."""
    return (datetime.now(UTC) + delta).replace(microsecond=0)


def make_id_token(
    expiry: datetime,
    *,
    issuer: str = ISSUER_URL,
    subject: str = "YOUR_SUBJECT",
    **claims: Any,
) -> str:
    payload = {"iss": issuer, "sub": subject, "exp": int(expiry.timestamp()), **claims}
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


class NoWaitContext(RunContext):
    """RunContext whose sleep returns at once (still honouring cancel)."""

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.sleeps: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.check()
        self.sleeps.append(seconds)


def oidc_user(
    name: str = "theUser",
    *,
    auth_provider_name: str = "oidc",
    **config: str,
) -> dict[str, Any]:
    """Build a kubeconfig users[] entry with an auth-provider."""
    return {
        "name": name,
        "user": {
            "auth-provider": {
                "name": auth_provider_name,
                "config": {
                    "idp-issuer-url": ISSUER_URL,
                    "client-id": CLIENT_ID,
                    **config,
                },
            }
        },
    }


def write_kubeconfig(
    path: Path,
    *,
    users: list[dict[str, Any]],
    contexts: list[dict[str, Any]] | None = None,
    current_context: str | None = None,
) -> Path:
    payload: dict[str, Any] = {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{"name": "theCluster", "cluster": {"server": "https://k8s.example.com"}}],
        "contexts": contexts or [],
        "users": users,
    }
    if current_context is not None:
        payload["current-context"] = current_context
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path


def load_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        payload = yaml.safe_load(f) or {}
    if not isinstance(payload, dict):
        raise ValueError("Expected mapping")
    return payload
