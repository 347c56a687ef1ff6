class TokenVerificationException(Exception):
    """
    Base class for every reason a bearer token can fail verification.

    kind is a stable identifier for diagnostics. It is meant for internal logs
    only; callers facing end users should report a generic authentication
    failure instead.
    """

    kind: str = "TokenVerificationFailed"

    def __init__(self, *, message: str) -> None:
        self.message: str = message
        super().__init__(message)
