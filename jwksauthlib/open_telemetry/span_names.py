from enum import StrEnum


class JwksOpenTelemetrySpanNames(StrEnum):
    FETCH_JWKS = "jwksauthlib.fetch_jwks"
    REFRESH_KEY_SET_CACHE = "jwksauthlib.refresh_key_set_cache"
    VERIFY_TOKEN = "jwksauthlib.verify_token"
    AUTHENTICATE = "jwksauthlib.authenticate"
