"""Stage-tagged errors raised by the token acquisition use cases.

Each fatal failure of ``get-token`` or ``login`` is raised as one of these,
chained to the collaborator error that caused it. ``stage`` names the step
that failed so callers can tell "no token at all" apart from "usable token
that was not recorded".
"""

from __future__ import annotations

from enum import StrEnum


class Stage(StrEnum):
    """Steps of a token acquisition that can fail."""

    LOCK = "lock"
    KUBECONFIG_READ = "kubeconfig-read"
    AUTHENTICATION = "authentication"
    DECODE = "decode"
    CACHE_WRITE = "cache-write"
    KUBECONFIG_WRITE = "kubeconfig-write"
    OUTPUT_WRITE = "output-write"


class KubeOIDCError(RuntimeError):
    """Base class for errors surfaced to the kubeoidc caller."""

    stage: Stage


class LockAcquireError(KubeOIDCError):
    """The cross-process lock could not be acquired."""

    stage = Stage.LOCK


class ConfigReadError(KubeOIDCError):
    """No usable OIDC auth provider could be read from the kubeconfig."""

    stage = Stage.KUBECONFIG_READ


class AuthenticationError(KubeOIDCError):
    """The identity provider round failed."""

    stage = Stage.AUTHENTICATION


class TokenDecodeError(KubeOIDCError):
    """The ID token is structurally invalid."""

    stage = Stage.DECODE


class CacheWriteError(KubeOIDCError):
    """A fresh token was obtained but could not be written to the cache."""

    stage = Stage.CACHE_WRITE


class ConfigWriteError(KubeOIDCError):
    """A fresh token was obtained but could not be written to the kubeconfig."""

    stage = Stage.KUBECONFIG_WRITE


class CredentialWriteError(KubeOIDCError):
    """The exec credential could not be written to the caller."""

    stage = Stage.OUTPUT_WRITE
