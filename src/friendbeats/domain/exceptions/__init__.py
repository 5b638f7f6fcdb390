"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message lives on the instance so handlers can read it without parsing
    # str(exc). Never raise this base class directly, pick a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid, e.g. Spotify
    client credentials are absent. Not retryable.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class ValidationError(DomainException):
    """Input validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("User ID must be provided")
    """

    pass


class NotFoundError(DomainException):
    """Requested upstream resource does not exist (HTTP 404).

    HTTP Status: 404
    """

    def __init__(self, resource: str, message: str | None = None) -> None:
        super().__init__(message or f"Spotify resource not found: {resource}")
        self.resource = resource


class RateLimitError(DomainException):
    """Upstream rate limit was exceeded (HTTP 429).

    retry_after carries the Retry-After header value in seconds when Spotify
    sent one.

    HTTP Status: 429
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(DomainException):
    """Upstream service returned a non-2xx response or could not be reached.

    status_code is None for transport failures (DNS, timeouts, refused
    connections) where no response exists.

    HTTP Status: 502 (Bad Gateway)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthServiceError(UpstreamError):
    """The Spotify accounts service failed to hand out an access token."""

    pass


class InvalidDateError(DomainException):
    """A timestamp could not be parsed as ISO-8601."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid ISO-8601 timestamp: {value!r}")
        self.value = value


__all__ = [
    "AuthServiceError",
    "ConfigurationError",
    "DomainException",
    "InvalidDateError",
    "NotFoundError",
    "RateLimitError",
    "UpstreamError",
    "ValidationError",
]
