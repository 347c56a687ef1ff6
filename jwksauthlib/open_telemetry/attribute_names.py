class JwksOpenTelemetryAttributeNames:
    JWKS_URI: str = "jwks.uri"
    JWKS_ATTEMPTS: str = "jwks.attempts"
    JWKS_KEY_COUNT: str = "jwks.key_count"
    JWKS_FORCED_REFRESH: str = "jwks.forced_refresh"
    TOKEN_KID: str = "token.kid"
    TOKEN_ALGORITHM: str = "token.alg"
    VERIFICATION_RESULT: str = "token.verification_result"
    CACHE_HIT: str = "cache.hit"
