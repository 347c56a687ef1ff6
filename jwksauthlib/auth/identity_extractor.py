from jwksauthlib.auth.models.claim_set import ClaimSet
from jwksauthlib.auth.models.identity_record import (
    BASELINE_ASSURANCE_LEVEL,
    IdentityRecord,
)


class IdentityExtractor:
    """
    Maps a validated ClaimSet onto an IdentityRecord.

    No validation happens here; absent optional claims get neutral defaults.
    """

    # noinspection PyMethodMayBeStatic
    def extract(self, *, claims: ClaimSet) -> IdentityRecord:
        audience = (
            (claims.audience,)
            if isinstance(claims.audience, str)
            else tuple(claims.audience)
        )
        return IdentityRecord(
            subject_id=claims.subject,
            email=claims.email,
            phone=claims.phone,
            role=claims.role,
            assurance_level=claims.aal or BASELINE_ASSURANCE_LEVEL,
            session_id=claims.session_id,
            is_anonymous=bool(claims.is_anonymous),
            app_metadata=dict(claims.app_metadata or {}),
            user_metadata=dict(claims.user_metadata or {}),
            authentication_methods=tuple(claims.amr or ()),
            issued_at=claims.issued_at,
            expires_at=claims.expiry,
            issuer=claims.issuer,
            audience=audience,
        )
