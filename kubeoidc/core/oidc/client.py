"""OpenID Connect client for discovery and token endpoint calls."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from kubeoidc import __version__
from kubeoidc.core.context import RunContext
from kubeoidc.core.oidc.tls import build_verify
from kubeoidc.models.oidc import Provider, TokenSet
from kubeoidc.models.tls import TLSClientConfig

logger = logging.getLogger(__name__)

DISCOVERY_PATH = "/.well-known/openid-configuration"
DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
DEFAULT_TIMEOUT = 30.0
DEFAULT_DEVICE_POLL_INTERVAL = 5


class OIDCClientError(RuntimeError):
    """Raised when the identity provider rejects or fails a request."""


class ProviderMetadata(BaseModel):
    """Subset of the OpenID provider metadata used by kubeoidc."""

    issuer: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str
    device_authorization_endpoint: str = ""


class DeviceAuthorization(BaseModel):
    """Device authorization response (RFC 8628 section 3.2)."""

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str = ""
    expires_in: int = 600
    interval: int = DEFAULT_DEVICE_POLL_INTERVAL


def _error_message(payload: dict[str, Any]) -> str:
    error = str(payload.get("error") or "unknown_error")
    description = payload.get("error_description")
    return f"{error}: {description}" if description else error


class OIDCClient:
    """Talks to one identity provider for one client.

    The discovery document is fetched once per instance.
    """

    def __init__(
        self,
        provider: Provider,
        tls_client_config: TLSClientConfig | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.provider = provider
        self._http = httpx.Client(
            timeout=timeout,
            verify=build_verify(tls_client_config or TLSClientConfig()),
            transport=transport,
            headers={"User-Agent": f"kubeoidc/{__version__}", "Accept": "application/json"},
        )
        self._metadata: ProviderMetadata | None = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OIDCClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def scopes(self) -> list[str]:
        scopes = ["openid"]
        scopes.extend(s for s in self.provider.extra_scopes if s != "openid")
        return scopes

    def discover(self) -> ProviderMetadata:
        if self._metadata is not None:
            return self._metadata
        url = self.provider.issuer_url.rstrip("/") + DISCOVERY_PATH
        logger.debug("fetching the discovery document %s", url)
        try:
            response = self._http.get(url)
            response.raise_for_status()
            self._metadata = ProviderMetadata.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise OIDCClientError(f"could not discover the provider {url}: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise OIDCClientError(f"invalid discovery document at {url}: {exc}") from exc
        return self._metadata

    def authorization_url(
        self,
        *,
        redirect_uri: str,
        state: str,
        nonce: str,
        code_challenge: str,
    ) -> str:
        endpoint = self.discover().authorization_endpoint
        if not endpoint:
            raise OIDCClientError("the provider does not support the authorization code grant")
        params = httpx.QueryParams(
            {
                "response_type": "code",
                "client_id": self.provider.client_id,
                "redirect_uri": redirect_uri,
                "scope": " ".join(self.scopes),
                "state": state,
                "nonce": nonce,
                "code_challenge": code_challenge,
                "code_challenge_method": "S256",
            }
        )
        separator = "&" if "?" in endpoint else "?"
        return f"{endpoint}{separator}{params}"

    def exchange_code(self, *, code: str, code_verifier: str, redirect_uri: str) -> TokenSet:
        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "code_verifier": code_verifier,
                "redirect_uri": redirect_uri,
            }
        )

    def refresh(self, refresh_token: str) -> TokenSet:
        token_set = self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        if not token_set.refresh_token:
            # Providers may omit a rotated refresh token; keep the current one.
            token_set = token_set.model_copy(update={"refresh_token": refresh_token})
        return token_set

    def get_token_by_password(self, username: str, password: str) -> TokenSet:
        return self._token_request(
            {
                "grant_type": "password",
                "username": username,
                "password": password,
                "scope": " ".join(self.scopes),
            }
        )

    def get_token_by_client_credentials(self) -> TokenSet:
        return self._token_request(
            {"grant_type": "client_credentials", "scope": " ".join(self.scopes)},
            access_token_fallback=True,
        )

    def request_device_code(self) -> DeviceAuthorization:
        endpoint = self.discover().device_authorization_endpoint
        if not endpoint:
            raise OIDCClientError("the provider does not support the device authorization grant")
        status, payload = self._post_form(
            endpoint,
            self._with_client_auth({"scope": " ".join(self.scopes)}),
        )
        if status >= 400 or "error" in payload:
            raise OIDCClientError(f"device authorization error: {_error_message(payload)}")
        # Some providers still use the draft name verification_url.
        if "verification_uri" not in payload and "verification_url" in payload:
            payload["verification_uri"] = payload["verification_url"]
        try:
            return DeviceAuthorization.model_validate(payload)
        except ValidationError as exc:
            raise OIDCClientError(f"invalid device authorization response: {exc}") from exc

    def poll_device_token(self, ctx: RunContext, device: DeviceAuthorization) -> TokenSet:
        """Poll the token endpoint until the user completes the device flow."""
        interval = max(1, device.interval)
        expires_ctx = RunContext(timeout=device.expires_in)
        data = {"grant_type": DEVICE_CODE_GRANT_TYPE, "device_code": device.device_code}
        while True:
            ctx.sleep(interval)
            if expires_ctx.expired():
                raise OIDCClientError("the device code has expired")
            status, payload = self._post_form(
                self.discover().token_endpoint, self._with_client_auth(dict(data))
            )
            error = payload.get("error")
            if status < 400 and not error:
                return self._parse_token_response(payload)
            if error == "authorization_pending":
                continue
            if error == "slow_down":
                interval += 5
                continue
            raise OIDCClientError(f"device token error: {_error_message(payload)}")

    def _with_client_auth(self, data: dict[str, str]) -> dict[str, str]:
        data["client_id"] = self.provider.client_id
        if self.provider.client_secret:
            data["client_secret"] = self.provider.client_secret
        return data

    def _post_form(self, url: str, data: dict[str, str]) -> tuple[int, dict[str, Any]]:
        try:
            response = self._http.post(url, data=data)
        except httpx.HTTPError as exc:
            raise OIDCClientError(f"request to {url} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            raise OIDCClientError(
                f"unexpected response from {url} (status {response.status_code})"
            )
        return response.status_code, payload

    def _token_request(
        self, data: dict[str, str], *, access_token_fallback: bool = False
    ) -> TokenSet:
        endpoint = self.discover().token_endpoint
        logger.debug("requesting a token with grant_type=%s", data.get("grant_type"))
        status, payload = self._post_form(endpoint, self._with_client_auth(data))
        if status >= 400 or "error" in payload:
            raise OIDCClientError(f"token error: {_error_message(payload)}")
        return self._parse_token_response(payload, access_token_fallback=access_token_fallback)

    @staticmethod
    def _parse_token_response(
        payload: dict[str, Any], *, access_token_fallback: bool = False
    ) -> TokenSet:
        id_token = payload.get("id_token")
        if not id_token and access_token_fallback:
            id_token = payload.get("access_token")
        if not isinstance(id_token, str) or not id_token:
            raise OIDCClientError("id_token is missing in the token response")
        refresh_token = payload.get("refresh_token")
        return TokenSet(
            id_token=id_token,
            refresh_token=refresh_token if isinstance(refresh_token, str) else "",
        )
