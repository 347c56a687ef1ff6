import logging
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, PrivateAttr

from jwksauthlib.auth.exceptions.jwks_fetch_exception import JwksDocumentException
from jwksauthlib.auth.models.public_key import PublicKey
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["JWKS"])


class JwksKeySet(BaseModel):
    """
    Immutable snapshot of the provider's published keys.

    A refresh always builds a new JwksKeySet; instances are never merged or
    modified after construction.
    """

    model_config = ConfigDict(frozen=True)

    keys: tuple[PublicKey, ...]
    fetched_at: float

    _index: Dict[str, PublicKey] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        index: Dict[str, PublicKey] = {}
        for public_key in self.keys:
            index.setdefault(public_key.key_id, public_key)
        self._index = index

    @property
    def kids(self) -> List[str]:
        return list(self._index.keys())

    def get_key(self, *, kid: str) -> PublicKey | None:
        return self._index.get(kid)

    def __len__(self) -> int:
        return len(self._index)

    @classmethod
    def from_jwks_document(
        cls, document: Any, *, fetched_at: float
    ) -> "JwksKeySet":
        """
        Parses the JSON body served by a key-set endpoint.

        Raises:
            JwksDocumentException: if the body is not an object, has no "keys"
                array, or none of its entries is a usable verification key.
        """
        if not isinstance(document, Mapping):
            raise JwksDocumentException("JWKS response is not a JSON object")
        raw_keys = document.get("keys")
        if not isinstance(raw_keys, list):
            raise JwksDocumentException("JWKS response missing keys array")
        if not raw_keys:
            raise JwksDocumentException("JWKS response contains no keys")

        keys: List[PublicKey] = []
        for raw_key in raw_keys:
            if not isinstance(raw_key, dict):
                logger.warning("Skipping JWKS entry that is not a JSON object")
                continue
            public_key = PublicKey.from_jwk(raw_key)
            if public_key is None:
                continue
            if any(k.key_id == public_key.key_id for k in keys):
                logger.warning(
                    f"Duplicate key ID '{public_key.key_id}' found in JWKS response, keeping the first one."
                )
                continue
            keys.append(public_key)

        if not keys:
            raise JwksDocumentException(
                f"JWKS response contains {len(raw_keys)} keys but none usable for signature verification"
            )
        return cls(keys=tuple(keys), fetched_at=fetched_at)
