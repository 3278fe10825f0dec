"""Shared test fixtures for the kubeoidc test suite."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tests.helpers import NoWaitContext, expiry_in, make_id_token


@pytest.fixture
def issued_expiry() -> datetime:
    """Expiry of a token issued one hour from now."""
    return expiry_in(timedelta(hours=1))


@pytest.fixture
def issued_id_token(issued_expiry: datetime) -> str:
    """A still-valid ID token."""
    return make_id_token(issued_expiry)


@pytest.fixture
def expired_id_token() -> str:
    """An ID token that expired an hour ago."""
    return make_id_token(expiry_in(timedelta(hours=-1)))


@pytest.fixture
def ctx() -> NoWaitContext:
    return NoWaitContext()
