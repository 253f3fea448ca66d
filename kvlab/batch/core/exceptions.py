"""Custom exception hierarchy."""

from __future__ import annotations


class BatchError(Exception):
    """Base exception for all library errors."""

    pass


class BatchValidationError(BatchError):
    """Request validation failure.

    Raised before any store call is made, so no partial state exists when
    the caller sees it.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreError(BatchError):
    """Error from the external key-value store.

    The ``retryable`` flag is the only thing the executor looks at when it
    decides between another attempt and failing the chunk.
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.code = code


class ThrottledError(StoreError):
    """Store throttled the request (capacity or rate exceeded)."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, retryable=True, code=code)
        self.retry_after = retry_after


class StoreTimeoutError(StoreError):
    """Store call timed out or the endpoint was temporarily unreachable."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, retryable=True, code=code)


class StoreRejectedError(StoreError):
    """Store refused the request outright (malformed, oversize, access denied)."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, retryable=False, code=code)
