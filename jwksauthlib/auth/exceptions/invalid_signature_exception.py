from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)


class InvalidSignatureException(TokenVerificationException):
    kind = "InvalidSignature"
