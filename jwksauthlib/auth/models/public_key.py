import logging
from typing import Any, Dict, Optional

from joserfc.errors import JoseError
from joserfc.jwk import ECKey, JWKRegistry, OKPKey, RSAKey
from pydantic import BaseModel, ConfigDict

from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["JWKS"])

# Algorithm to assume when a published JWK omits "alg".
_CURVE_ALGORITHMS: Dict[str, str] = {
    "P-256": "ES256",
    "P-384": "ES384",
    "P-521": "ES512",
    "secp256k1": "ES256K",
    "Ed25519": "EdDSA",
    "Ed448": "EdDSA",
}
_DEFAULT_RSA_ALGORITHM = "RS256"


class PublicKey(BaseModel):
    """One published signature-verification key, addressed by its kid."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key_id: str
    algorithm: str
    key_type: str
    key: ECKey | RSAKey | OKPKey

    @staticmethod
    def infer_algorithm(*, jwk: Dict[str, Any]) -> Optional[str]:
        alg = jwk.get("alg")
        if isinstance(alg, str) and alg:
            return alg
        kty = jwk.get("kty")
        if kty in ("EC", "OKP"):
            return _CURVE_ALGORITHMS.get(str(jwk.get("crv")))
        if kty == "RSA":
            return _DEFAULT_RSA_ALGORITHM
        return None

    @classmethod
    def from_jwk(cls, jwk: Dict[str, Any]) -> Optional["PublicKey"]:
        """
        Builds a PublicKey from one JWK entry.

        Returns None for entries that cannot verify signatures: no kid,
        symmetric keys, encryption-only keys, unknown algorithms or key
        material that does not import.
        """
        kid = jwk.get("kid")
        if not isinstance(kid, str) or not kid:
            logger.warning("Skipping JWK without a 'kid'")
            return None

        kty = jwk.get("kty")
        if kty not in ("EC", "RSA", "OKP"):
            logger.warning(f"Skipping JWK '{kid}' with unsupported key type '{kty}'")
            return None

        if jwk.get("use", "sig") != "sig":
            logger.warning(f"Skipping JWK '{kid}' published for use '{jwk.get('use')}'")
            return None

        algorithm = cls.infer_algorithm(jwk=jwk)
        if not algorithm:
            logger.warning(f"Skipping JWK '{kid}': cannot determine its algorithm")
            return None

        try:
            key = JWKRegistry.import_key(jwk)
        except (JoseError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Skipping JWK '{kid}': key material did not import [{type(e)}]")
            return None

        if not isinstance(key, (ECKey, RSAKey, OKPKey)):
            logger.warning(f"Skipping JWK '{kid}': imported as {type(key).__name__}")
            return None

        return cls(key_id=kid, algorithm=algorithm, key_type=str(kty), key=key)
