from typing import Any, Dict

import pytest

from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksDocumentException
from jwksauthlib.auth.models.key_set import JwksKeySet
from jwksauthlib.auth.models.public_key import PublicKey
from tests.auth.token_factory import (
    generate_ec_key_and_jwk,
    generate_rsa_key_and_jwk,
)


def test_from_jwks_document_indexes_keys_by_kid(
    ec_key_k1: tuple[bytes, Dict[str, Any]],
) -> None:
    _, jwk1 = ec_key_k1
    _, jwk2 = generate_rsa_key_and_jwk("r1")

    key_set = JwksKeySet.from_jwks_document({"keys": [jwk1, jwk2]}, fetched_at=100.0)

    assert key_set.kids == ["k1", "r1"]
    assert len(key_set) == 2
    assert key_set.fetched_at == 100.0
    k1 = key_set.get_key(kid="k1")
    assert k1 is not None
    assert k1.algorithm == "ES256"
    assert k1.key_type == "EC"
    r1 = key_set.get_key(kid="r1")
    assert r1 is not None
    assert r1.algorithm == "RS256"
    assert key_set.get_key(kid="missing") is None


@pytest.mark.parametrize(
    "document",
    [
        [],
        "not-a-document",
        {},
        {"keys": "abc"},
        {"keys": []},
    ],
)
def test_from_jwks_document_rejects_malformed_documents(document: Any) -> None:
    with pytest.raises(JwksDocumentException):
        JwksKeySet.from_jwks_document(document, fetched_at=0.0)


def test_from_jwks_document_rejects_sets_without_usable_keys() -> None:
    document = {
        "keys": [
            {"kty": "oct", "kid": "hmac", "k": "c2VjcmV0"},
            {"kty": "EC", "crv": "P-256", "x": "abc", "y": "def"},
        ]
    }
    with pytest.raises(JwksDocumentException, match="none usable"):
        JwksKeySet.from_jwks_document(document, fetched_at=0.0)


def test_from_jwks_document_skips_unusable_entries(
    ec_key_k1: tuple[bytes, Dict[str, Any]],
) -> None:
    _, jwk1 = ec_key_k1
    _, enc_jwk = generate_ec_key_and_jwk("enc-key")
    enc_jwk["use"] = "enc"
    document = {
        "keys": [
            "garbage",
            {"kty": "oct", "kid": "hmac", "k": "c2VjcmV0"},
            enc_jwk,
            jwk1,
        ]
    }

    key_set = JwksKeySet.from_jwks_document(document, fetched_at=0.0)

    assert key_set.kids == ["k1"]


def test_from_jwks_document_keeps_first_duplicate_kid() -> None:
    _, first = generate_ec_key_and_jwk("dup")
    _, second = generate_ec_key_and_jwk("dup")

    key_set = JwksKeySet.from_jwks_document({"keys": [first, second]}, fetched_at=0.0)

    assert key_set.kids == ["dup"]
    assert len(key_set.keys) == 1


def test_infer_algorithm_from_curve_when_alg_is_absent() -> None:
    _, jwk = generate_ec_key_and_jwk("no-alg", include_alg=False)

    public_key = PublicKey.from_jwk(jwk)

    assert public_key is not None
    assert public_key.algorithm == "ES256"
    assert PublicKey.infer_algorithm(jwk={"kty": "OKP", "crv": "Ed25519"}) == "EdDSA"
    assert PublicKey.infer_algorithm(jwk={"kty": "RSA"}) == "RS256"
    assert PublicKey.infer_algorithm(jwk={"kty": "EC", "crv": "unknown"}) is None
