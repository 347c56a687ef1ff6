from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)


class TokenClaimException(TokenVerificationException):
    """Base class for claim-level rule failures on a correctly signed token."""

    kind = "InvalidClaim"


class MissingClaimException(TokenClaimException):
    kind = "MissingClaim"

    def __init__(self, *, message: str, claim: str) -> None:
        super().__init__(message=message)
        self.claim: str = claim


class IssuerMismatchException(TokenClaimException):
    kind = "IssuerMismatch"


class AudienceMismatchException(TokenClaimException):
    kind = "AudienceMismatch"


class TokenExpiredException(TokenClaimException):
    kind = "TokenExpired"

    def __init__(self, *, message: str, expires: int | float, now: float) -> None:
        super().__init__(message=message)
        self.expires: int | float = expires
        self.now: float = now


class RoleNotAllowedException(TokenClaimException):
    kind = "RoleNotAllowed"

    def __init__(self, *, message: str, role: str) -> None:
        super().__init__(message=message)
        self.role: str = role


class IssuedInFutureException(TokenClaimException):
    kind = "IssuedInFuture"
