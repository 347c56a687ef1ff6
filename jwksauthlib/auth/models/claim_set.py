from typing import Any, Dict, FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

# Claims every accepted token must carry, in the order they are checked.
REQUIRED_CLAIMS: tuple[str, ...] = ("iss", "aud", "exp", "sub", "role")

# RFC 7519 NumericDate: a JSON number, possibly fractional. Numeric strings are rejected.
NumericDate = StrictInt | StrictFloat


class ClaimSet(BaseModel):
    """
    Decoded payload of a verified token.

    Fields are populated from the registered JWT claim names (iss, aud, exp,
    ...). Claims without a dedicated field are kept as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    issuer: str = Field(alias="iss")
    audience: str | List[str] = Field(alias="aud")
    expiry: NumericDate = Field(alias="exp")
    subject: str = Field(alias="sub")
    role: str
    issued_at: NumericDate | None = Field(default=None, alias="iat")
    session_id: str | None = None
    aal: str | None = None
    email: str | None = None
    phone: str | None = None
    is_anonymous: bool | None = None
    amr: List[Any] | None = None
    app_metadata: Dict[str, Any] | None = None
    user_metadata: Dict[str, Any] | None = None

    @property
    def audiences(self) -> FrozenSet[str]:
        if isinstance(self.audience, str):
            return frozenset([self.audience])
        return frozenset(self.audience)

    def to_claims(self) -> Dict[str, Any]:
        """Returns the claims keyed by their JWT names, as they appeared in the token."""
        return self.model_dump(by_alias=True, exclude_none=True)
