"""TLS client configuration for calls to the identity provider."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TLSClientConfig(BaseModel):
    """CA certificates and verification switch for outbound TLS."""

    model_config = ConfigDict(frozen=True)

    ca_cert_filenames: tuple[str, ...] = ()
    ca_cert_data: tuple[str, ...] = ()
    skip_tls_verify: bool = False
