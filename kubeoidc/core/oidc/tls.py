"""Build httpx TLS verification settings from a TLS client config."""

from __future__ import annotations

import base64
import binascii
import ssl

from kubeoidc.models.tls import TLSClientConfig


class TLSConfigError(ValueError):
    """Raised when a CA certificate cannot be loaded."""


def build_verify(config: TLSClientConfig) -> ssl.SSLContext | bool:
    """Return the ``verify`` argument for ``httpx.Client``.

    Without extra CA certificates the system trust store is used. Inline CA
    data is base64 encoded PEM, as in kubeconfig files.
    """
    if config.skip_tls_verify:
        return False
    if not config.ca_cert_filenames and not config.ca_cert_data:
        return True

    context = ssl.create_default_context()
    for filename in config.ca_cert_filenames:
        try:
            context.load_verify_locations(cafile=filename)
        except (OSError, ssl.SSLError) as exc:
            raise TLSConfigError(f"could not load the certificate file {filename}: {exc}") from exc
    for data in config.ca_cert_data:
        try:
            pem = base64.b64decode(data, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise TLSConfigError(f"could not decode the certificate data: {exc}") from exc
        try:
            context.load_verify_locations(cadata=pem)
        except ssl.SSLError as exc:
            raise TLSConfigError(f"could not load the certificate data: {exc}") from exc
    return context
