from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)


class UnknownKeyException(TokenVerificationException):
    """Raised when the token's kid is absent from the key set, even after a forced refresh."""

    kind = "UnknownKey"

    def __init__(self, *, message: str, kid: str) -> None:
        super().__init__(message=message)
        self.kid: str = kid
