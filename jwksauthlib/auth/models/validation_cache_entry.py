from pydantic import BaseModel, ConfigDict

from jwksauthlib.auth.models.claim_set import ClaimSet


class ValidationCacheEntry(BaseModel):
    """A memoized successful verification. token_hash is a digest, never the token itself."""

    model_config = ConfigDict(frozen=True)

    token_hash: str
    claims: ClaimSet
    expires_at: float

    def is_live(self, *, now: float) -> bool:
        return now < self.expires_at
