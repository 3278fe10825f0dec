"""Exec credential output for client-go credential plugins."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import IO, Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

API_VERSION_V1BETA1 = "client.authentication.k8s.io/v1beta1"
API_VERSION_V1 = "client.authentication.k8s.io/v1"
SUPPORTED_API_VERSIONS = (API_VERSION_V1BETA1, API_VERSION_V1)
EXEC_INFO_ENV = "KUBERNETES_EXEC_INFO"


class CredentialOutput(BaseModel):
    """Token handed to the calling client."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    expiry: datetime


class CredentialPluginWriterInterface(Protocol):
    def write(self, output: CredentialOutput) -> None: ...


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _exec_info(environ: Mapping[str, str]) -> dict[str, Any]:
    raw = environ.get(EXEC_INFO_ENV, "")
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return payload if isinstance(payload, dict) else {}


class CredentialPluginWriter:
    """Writes an ``ExecCredential`` document to a stream (stdout by default).

    The API version follows ``KUBERNETES_EXEC_INFO`` when client-go provides
    a supported one, and falls back to v1beta1.
    """

    def __init__(
        self,
        stream: IO[str] | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        self._stream = stream
        self._environ = environ

    def build_payload(self, output: CredentialOutput) -> dict[str, Any]:
        info = _exec_info(os.environ if self._environ is None else self._environ)
        api_version = info.get("apiVersion")
        if api_version not in SUPPORTED_API_VERSIONS:
            api_version = API_VERSION_V1BETA1
        return {
            "kind": "ExecCredential",
            "apiVersion": api_version,
            "status": {
                "token": output.token,
                "expirationTimestamp": _format_timestamp(output.expiry),
            },
        }

    def write(self, output: CredentialOutput) -> None:
        stream = self._stream or sys.stdout
        stream.write(json.dumps(self.build_payload(output), indent=2) + "\n")
        stream.flush()
