class JwksFetchException(Exception):
    """
    Raised when the key-set endpoint could not be read after exhausting all
    attempts, or when it answered with a body that holds no usable keys.
    """

    kind: str = "FetchError"

    def __init__(
        self,
        *,
        message: str,
        jwks_uri: str,
        attempts: int,
        last_error: Exception | None,
    ) -> None:
        self.message: str = message
        self.jwks_uri: str = jwks_uri
        self.attempts: int = attempts
        self.last_error: Exception | None = last_error
        super().__init__(message)


class JwksDocumentException(ValueError):
    """Raised when a key-set document is malformed or contains no usable keys."""
