"""OpenID Connect provider and token models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Provider(BaseModel):
    """One identity provider / client pairing."""

    model_config = ConfigDict(frozen=True)

    issuer_url: str
    client_id: str
    client_secret: str = ""
    extra_scopes: tuple[str, ...] = ()


class TokenSet(BaseModel):
    """Tokens returned by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id_token: str
    refresh_token: str = ""


class IDTokenClaims(BaseModel):
    """Claims decoded from an ID token without signature verification."""

    model_config = ConfigDict(frozen=True)

    subject: str = ""
    expiry: datetime
    pretty: str = Field(default="", repr=False)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expiry
