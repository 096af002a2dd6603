"""
Error taxonomy for the filing pipeline.

Only precondition failures (ConfigurationError, InvalidBatchError) are meant
to reach API callers. Upstream errors are raised inside the HTTP clients and
absorbed per order or per submission by the services that call them.
"""


class PNFilerError(Exception):
    """Base exception for all pipeline errors."""


class ConfigurationError(PNFilerError):
    """A required credential or setting is missing or unusable.

    Fatal for the whole operation and never retried.
    """


class InvalidBatchError(PNFilerError):
    """Batch input was rejected before any external call was made."""


class UpstreamError(PNFilerError):
    """An upstream service call failed.

    Carries the service name and HTTP status (when one was received) so
    callers can log or report a readable reason.
    """

    def __init__(self, message: str, service: str, status_code: int | None = None):
        self.message = message
        self.service = service
        self.status_code = status_code

        parts = [f"[{service}] {message}"]
        if status_code:
            parts.append(f"(HTTP {status_code})")
        super().__init__(" ".join(parts))


class TransientUpstreamError(UpstreamError):
    """Network failure or 5xx response. Retried with exponential backoff."""


class RateLimitedError(UpstreamError):
    """HTTP 429. Retried after the advertised delay without using an attempt."""

    def __init__(
        self,
        message: str,
        service: str,
        retry_after: float | None = None,
        status_code: int | None = 429,
    ):
        super().__init__(message, service, status_code)
        self.retry_after = retry_after


class RetryExhaustedError(UpstreamError):
    """The retry budget for a single call has been spent."""
