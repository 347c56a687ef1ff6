from typing import Any, Dict
from unittest.mock import AsyncMock, call

import httpx
import pytest
import respx
from httpx import Response

from jwksauthlib.auth.exceptions.jwks_fetch_exception import (
    JwksDocumentException,
    JwksFetchException,
)
from jwksauthlib.auth.jwks.jwks_fetcher import JwksFetcher, compute_backoff_delay
from tests.auth.token_factory import JWKS_URI


def make_fetcher(sleep: AsyncMock, max_attempts: int = 3) -> JwksFetcher:
    return JwksFetcher(
        jwks_uri=JWKS_URI,
        max_attempts=max_attempts,
        retry_base_delay_seconds=1.0,
        retry_max_delay_seconds=30.0,
        sleep=sleep,
        clock=lambda: 1234.0,
    )


def test_compute_backoff_delay_doubles_per_attempt() -> None:
    delays = [
        compute_backoff_delay(attempt=attempt, base_delay=0.5, max_delay=100.0)
        for attempt in range(1, 5)
    ]
    assert delays == [0.5, 1.0, 2.0, 4.0]


def test_compute_backoff_delay_is_capped() -> None:
    assert compute_backoff_delay(attempt=10, base_delay=1.0, max_delay=5.0) == 5.0
    with pytest.raises(ValueError):
        compute_backoff_delay(attempt=0, base_delay=1.0, max_delay=5.0)


@pytest.mark.asyncio
@respx.mock
async def test_fetch_async_returns_key_set(
    ec_key_k1: tuple[bytes, Dict[str, Any]],
) -> None:
    _, jwk = ec_key_k1
    route = respx.get(JWKS_URI).mock(return_value=Response(200, json={"keys": [jwk]}))
    sleep = AsyncMock()

    key_set = await make_fetcher(sleep).fetch_async()

    assert key_set.kids == ["k1"]
    assert key_set.fetched_at == 1234.0
    assert route.call_count == 1
    assert route.calls.last.request.headers["accept"] == "application/json"
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@respx.mock
async def test_fetch_async_retries_server_errors_with_backoff() -> None:
    route = respx.get(JWKS_URI).mock(return_value=Response(500))
    sleep = AsyncMock()

    with pytest.raises(JwksFetchException) as exc_info:
        await make_fetcher(sleep).fetch_async()

    assert route.call_count == 3
    assert exc_info.value.attempts == 3
    assert exc_info.value.jwks_uri == JWKS_URI
    assert isinstance(exc_info.value.last_error, httpx.HTTPStatusError)
    assert exc_info.value.__cause__ is exc_info.value.last_error
    assert sleep.await_args_list == [call(1.0), call(2.0)]


@pytest.mark.asyncio
@respx.mock
async def test_fetch_async_recovers_after_transient_failures(
    ec_key_k1: tuple[bytes, Dict[str, Any]],
) -> None:
    _, jwk = ec_key_k1
    route = respx.get(JWKS_URI).mock(
        side_effect=[
            httpx.ConnectError("connection refused"),
            Response(503),
            Response(200, json={"keys": [jwk]}),
        ]
    )
    sleep = AsyncMock()

    key_set = await make_fetcher(sleep).fetch_async()

    assert key_set.kids == ["k1"]
    assert route.call_count == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_fetch_async_does_not_retry_empty_key_set() -> None:
    route = respx.get(JWKS_URI).mock(return_value=Response(200, json={"keys": []}))
    sleep = AsyncMock()

    with pytest.raises(JwksFetchException) as exc_info:
        await make_fetcher(sleep).fetch_async()

    assert route.call_count == 1
    assert exc_info.value.attempts == 1
    assert isinstance(exc_info.value.last_error, JwksDocumentException)
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@respx.mock
async def test_fetch_async_rejects_non_json_body() -> None:
    respx.get(JWKS_URI).mock(return_value=Response(200, text="<html>oops</html>"))

    with pytest.raises(JwksFetchException):
        await make_fetcher(AsyncMock()).fetch_async()


def test_fetcher_requires_uri_and_attempts() -> None:
    with pytest.raises(ValueError):
        JwksFetcher(jwks_uri="")
    with pytest.raises(ValueError):
        JwksFetcher(jwks_uri=JWKS_URI, max_attempts=0)
