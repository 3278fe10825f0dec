"""Kubeconfig OIDC auth-provider entry."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kubeoidc.models.oidc import Provider, TokenSet
from kubeoidc.models.tls import TLSClientConfig

AUTH_PROVIDER_NAME = "oidc"

# Model field -> key under users[].user.auth-provider.config
CONFIG_KEYS: dict[str, str] = {
    "idp_issuer_url": "idp-issuer-url",
    "client_id": "client-id",
    "client_secret": "client-secret",
    "idp_certificate_authority": "idp-certificate-authority",
    "idp_certificate_authority_data": "idp-certificate-authority-data",
    "id_token": "id-token",
    "refresh_token": "refresh-token",
}
EXTRA_SCOPES_KEY = "extra-scopes"


class AuthProvider(BaseModel):
    """The ``oidc`` auth-provider of one kubeconfig user.

    ``location_of_origin`` is the file that defines the user; updates are
    written back there.
    """

    model_config = ConfigDict(frozen=True)

    location_of_origin: Path
    user_name: str
    context_name: str = ""
    idp_issuer_url: str
    client_id: str
    client_secret: str = ""
    idp_certificate_authority: str = ""
    idp_certificate_authority_data: str = ""
    extra_scopes: tuple[str, ...] = ()
    id_token: str = Field(default="", repr=False)
    refresh_token: str = Field(default="", repr=False)

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        *,
        location_of_origin: Path,
        user_name: str,
        context_name: str = "",
    ) -> AuthProvider:
        values: dict[str, Any] = {
            field: str(config.get(key) or "") for field, key in CONFIG_KEYS.items()
        }
        raw_scopes = str(config.get(EXTRA_SCOPES_KEY) or "")
        values["extra_scopes"] = tuple(s.strip() for s in raw_scopes.split(",") if s.strip())
        return cls(
            location_of_origin=location_of_origin,
            user_name=user_name,
            context_name=context_name,
            **values,
        )

    def to_config(self) -> dict[str, str]:
        """Render the provider config, omitting empty optional values."""
        config = {
            key: getattr(self, field)
            for field, key in CONFIG_KEYS.items()
            if getattr(self, field)
        }
        if self.extra_scopes:
            config[EXTRA_SCOPES_KEY] = ",".join(self.extra_scopes)
        return config

    def provider(self) -> Provider:
        return Provider(
            issuer_url=self.idp_issuer_url,
            client_id=self.client_id,
            client_secret=self.client_secret,
            extra_scopes=self.extra_scopes,
        )

    def tls_client_config(self) -> TLSClientConfig:
        return TLSClientConfig(
            ca_cert_filenames=(
                (self.idp_certificate_authority,) if self.idp_certificate_authority else ()
            ),
            ca_cert_data=(
                (self.idp_certificate_authority_data,)
                if self.idp_certificate_authority_data
                else ()
            ),
        )

    def token_set(self) -> TokenSet | None:
        """Tokens currently held by the entry, or None without an ID token."""
        if not self.id_token:
            return None
        return TokenSet(id_token=self.id_token, refresh_token=self.refresh_token)

    def with_token_set(self, token_set: TokenSet) -> AuthProvider:
        return self.model_copy(
            update={"id_token": token_set.id_token, "refresh_token": token_set.refresh_token}
        )
