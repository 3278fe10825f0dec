"""Decode ID token claims without verifying the signature."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import jwt

from kubeoidc.models.oidc import IDTokenClaims, TokenSet


class ClaimsDecodeError(ValueError):
    """Raised when an ID token is not a structurally valid JWT."""


def decode_id_token(id_token: str) -> IDTokenClaims:
    """Decode the claims of a JWT.

    The signature is never checked here; the token came straight from the
    issuer over TLS or from a cache this user owns.
    """
    try:
        claims = jwt.decode(id_token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise ClaimsDecodeError(f"could not decode the token: {exc}") from exc

    exp = claims.get("exp")
    if not isinstance(exp, int | float) or isinstance(exp, bool):
        raise ClaimsDecodeError("the token has no valid exp claim")
    try:
        expiry = datetime.fromtimestamp(exp, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise ClaimsDecodeError(f"the exp claim is out of range: {exp}") from exc
    return IDTokenClaims(
        subject=str(claims.get("sub") or ""),
        expiry=expiry,
        pretty=json.dumps(claims, indent=2, sort_keys=True, default=str),
    )


def decode_without_verify(token_set: TokenSet) -> IDTokenClaims:
    """Decode the ID token of a token set."""
    return decode_id_token(token_set.id_token)
