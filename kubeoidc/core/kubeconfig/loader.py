"""Read and update the OIDC auth-provider of the current kubeconfig user."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

import yaml

from kubeoidc.core.kubeconfig.models import AUTH_PROVIDER_NAME, AuthProvider
from kubeoidc.utils.files import atomic_write_text
from kubeoidc.utils.state import default_kubeconfig_paths

logger = logging.getLogger(__name__)


class KubeconfigError(RuntimeError):
    """Raised when a kubeconfig cannot be read, resolved or written."""


class KubeconfigInterface(Protocol):
    def get_current_auth_provider(
        self, filename: str, context_name: str, user_name: str
    ) -> AuthProvider: ...

    def update_auth_provider(self, auth_provider: AuthProvider) -> None: ...


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except OSError as exc:
        raise KubeconfigError(f"could not read kubeconfig {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"invalid kubeconfig {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise KubeconfigError(f"kubeconfig {path} must be a mapping")
    return payload


def _mapping(value: Any, what: str) -> dict[str, Any]:
    """Return a kubeconfig section as a mapping; an absent section is empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise KubeconfigError(f"{what} must be a mapping")
    return value


def _named(items: Any, name: str) -> dict[str, Any] | None:
    """Find ``{"name": name, ...}`` in a kubeconfig list section."""
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, dict) and item.get("name") == name:
            return item
    return None


class Kubeconfig:
    """Kubeconfig access following kubectl's loading rules.

    With an explicit filename only that file is read. Otherwise every file in
    ``KUBECONFIG`` (or ``~/.kube/config``) is considered, and for each lookup
    the first file that defines the value wins.
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        self._environ = environ

    def get_current_auth_provider(
        self, filename: str, context_name: str, user_name: str
    ) -> AuthProvider:
        documents = self._load_documents(filename)

        if not user_name:
            if not context_name:
                context_name = next(
                    (
                        str(doc["current-context"])
                        for _, doc in documents
                        if doc.get("current-context")
                    ),
                    "",
                )
                if not context_name:
                    raise KubeconfigError("current-context is not set in the kubeconfig")
            context = self._find(documents, "contexts", context_name)
            if context is None:
                raise KubeconfigError(f"context {context_name} does not exist")
            context_body = _mapping(context[1].get("context"), f"context {context_name}")
            user_name = str(context_body.get("user") or "")
            if not user_name:
                raise KubeconfigError(f"context {context_name} has no user")
        logger.debug("using kubeconfig context=%r user=%r", context_name, user_name)

        found = self._find(documents, "users", user_name)
        if found is None:
            raise KubeconfigError(f"user {user_name} does not exist")
        location, user = found
        user_body = _mapping(user.get("user"), f"user {user_name}")
        auth_provider = user_body.get("auth-provider")
        if not isinstance(auth_provider, dict):
            raise KubeconfigError(f"auth-provider is missing in user {user_name}")
        if auth_provider.get("name") != AUTH_PROVIDER_NAME:
            raise KubeconfigError(
                f"auth-provider.name must be {AUTH_PROVIDER_NAME} "
                f"but got {auth_provider.get('name')!r} (no oidc config)"
            )
        config = _mapping(auth_provider.get("config"), f"auth-provider.config of user {user_name}")

        return AuthProvider.from_config(
            config,
            location_of_origin=location,
            user_name=user_name,
            context_name=context_name,
        )

    def update_auth_provider(self, auth_provider: AuthProvider) -> None:
        path = auth_provider.location_of_origin
        payload = _load_yaml(path)
        user = _named(payload.get("users"), auth_provider.user_name)
        if user is None:
            raise KubeconfigError(f"user {auth_provider.user_name} does not exist in {path}")
        user_body = _mapping(user.get("user"), f"user {auth_provider.user_name}")
        user["user"] = user_body
        provider_entry = _mapping(
            user_body.get("auth-provider"), f"auth-provider of user {auth_provider.user_name}"
        )
        user_body["auth-provider"] = provider_entry
        provider_entry["name"] = AUTH_PROVIDER_NAME
        config = provider_entry.get("config")
        if not isinstance(config, dict):
            config = {}
        # Keys this tool does not model are kept as they are.
        rendered = auth_provider.to_config()
        config.update(rendered)
        for key in ("id-token", "refresh-token"):
            if key not in rendered:
                config.pop(key, None)
        provider_entry["config"] = config

        try:
            atomic_write_text(path, yaml.safe_dump(payload, sort_keys=False))
        except OSError as exc:
            raise KubeconfigError(f"could not write kubeconfig {path}: {exc}") from exc
        logger.debug("updated auth-provider of user %s in %s", auth_provider.user_name, path)

    def _load_documents(self, filename: str) -> list[tuple[Path, dict[str, Any]]]:
        if filename:
            path = Path(filename).expanduser()
            return [(path, _load_yaml(path))]

        documents = [
            (path, _load_yaml(path))
            for path in default_kubeconfig_paths(self._environ)
            if path.exists()
        ]
        if not documents:
            raise KubeconfigError("no kubeconfig file found")
        return documents

    @staticmethod
    def _find(
        documents: list[tuple[Path, dict[str, Any]]], section: str, name: str
    ) -> tuple[Path, dict[str, Any]] | None:
        for path, doc in documents:
            item = _named(doc.get(section), name)
            if item is not None:
                return path, item
        return None
