"""
Shared test fixtures for jwksauthlib tests.
"""

from typing import Any, Dict

import pytest

from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksFetchException
from tests.auth.token_factory import JWKS_URI, generate_ec_key_and_jwk


@pytest.fixture(scope="session")
def ec_key_k1() -> tuple[bytes, Dict[str, Any]]:
    return generate_ec_key_and_jwk("k1")


@pytest.fixture(scope="session")
def ec_key_k2() -> tuple[bytes, Dict[str, Any]]:
    return generate_ec_key_and_jwk("k2")


def make_fetch_error(attempts: int = 3) -> JwksFetchException:
    return JwksFetchException(
        message=f"Failed to fetch JWKS from {JWKS_URI} after {attempts} attempts",
        jwks_uri=JWKS_URI,
        attempts=attempts,
        last_error=None,
    )


@pytest.fixture
def fetch_error() -> JwksFetchException:
    return make_fetch_error()
