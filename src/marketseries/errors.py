"""Market data error types."""

from __future__ import annotations

from enum import Enum


class MarketDataErrorCode(Enum):
    """Error classification codes.

    RATE_LIMITED, TIMEOUT and PROVIDER_ERROR are transient: the same call
    may succeed after a backoff. Every other code is permanent for the
    request that produced it.
    """

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    PERSISTENCE_FAILED = "persistence_failed"
    VALIDATION_FAILED = "validation_failed"
    NO_DATA = "no_data"

    @property
    def transient(self) -> bool:
        return self in (
            MarketDataErrorCode.RATE_LIMITED,
            MarketDataErrorCode.TIMEOUT,
            MarketDataErrorCode.PROVIDER_ERROR,
        )


class MarketDataError(Exception):
    """Provider, storage or data failure for one symbol or request.

    Attributes:
        code: Structured error code for programmatic handling.
        retryable: Whether the fetcher retries the call after a backoff.
            Defaults to ``code.transient``.
    """

    def __init__(
        self,
        message: str,
        code: MarketDataErrorCode = MarketDataErrorCode.PROVIDER_ERROR,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = code.transient if retryable is None else retryable

    @property
    def rate_limited(self) -> bool:
        return self.code is MarketDataErrorCode.RATE_LIMITED
