from jwksauthlib.auth.exceptions.token_verification_exception import (
    TokenVerificationException,
)


class AlgorithmMismatchException(TokenVerificationException):
    """
    Raised when the token header declares a different algorithm than the one the
    matching key was published for.
    """

    kind = "AlgorithmMismatch"

    def __init__(
        self, *, message: str, token_algorithm: str | None, key_algorithm: str
    ) -> None:
        super().__init__(message=message)
        self.token_algorithm: str | None = token_algorithm
        self.key_algorithm: str = key_algorithm
