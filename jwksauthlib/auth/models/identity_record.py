from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

BASELINE_ASSURANCE_LEVEL = "aal1"


class IdentityRecord(BaseModel):
    """Normalized identity handed to the rest of the application after a successful verification."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    email: str | None = None
    phone: str | None = None
    role: str
    assurance_level: str = BASELINE_ASSURANCE_LEVEL
    session_id: str | None = None
    is_anonymous: bool = False
    app_metadata: Dict[str, Any] = Field(default_factory=dict)
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    authentication_methods: tuple[Any, ...] = ()
    issued_at: int | float | None = None
    expires_at: int | float
    issuer: str
    audience: tuple[str, ...]
