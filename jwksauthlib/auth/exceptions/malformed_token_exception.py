from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)


class MalformedTokenException(TokenVerificationException):
    kind = "MalformedToken"
