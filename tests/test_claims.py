"""Tests for unverified ID token decoding."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from kubeoidc.core.oidc.claims import ClaimsDecodeError, decode_id_token, decode_without_verify
from kubeoidc.models import TokenSet
from tests.helpers import SIGNING_KEY, expiry_in, make_id_token


def test_decode_claims() -> None:
    expiry = expiry_in(timedelta(hours=1))
    claims = decode_id_token(make_id_token(expiry, subject="alice", email="alice@example.com"))

    assert claims.subject == "alice"
    assert claims.expiry == expiry
    assert json.loads(claims.pretty)["email"] == "alice@example.com"


def test_signature_is_not_verified() -> None:
    token = jwt.encode({"exp": 2000000000}, "some-other-key-that-nobody-knows-0123", "HS256")
    assert decode_id_token(token).expiry == datetime.fromtimestamp(2000000000, tz=UTC)


def test_expired_token_still_decodes() -> None:
    expiry = expiry_in(timedelta(hours=-1))
    claims = decode_without_verify(TokenSet(id_token=make_id_token(expiry)))
    assert claims.is_expired(datetime.now(UTC))


def test_is_expired_at_boundary() -> None:
    claims = decode_id_token(make_id_token(datetime(2030, 1, 1, tzinfo=UTC)))
    assert not claims.is_expired(datetime(2029, 12, 31, 23, 59, 59, tzinfo=UTC))
    assert claims.is_expired(datetime(2030, 1, 1, tzinfo=UTC))


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token(token: str) -> None:
    with pytest.raises(ClaimsDecodeError):
        decode_id_token(token)


def test_token_without_exp() -> None:
    token = jwt.encode({"sub": "alice"}, SIGNING_KEY, algorithm="HS256")
    with pytest.raises(ClaimsDecodeError, match="exp"):
        decode_id_token(token)


@pytest.mark.parametrize("exp", [10**20, -(10**20)])
def test_exp_out_of_range(exp: int) -> None:
    token = jwt.encode({"sub": "alice", "exp": exp}, SIGNING_KEY, algorithm="HS256")
    with pytest.raises(ClaimsDecodeError, match="out of range"):
        decode_id_token(token)
