"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - always use a specific subclass so callers
    # can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("Unknown platform: sega")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)

    Example:
        raise ConfigurationError("XBOX_CLIENT_ID is not configured")
    """

    pass


class ExternalServiceError(DomainException):
    """External service (Microsoft Store, etc.) returned an error.

    HTTP Status: 502 (Bad Gateway)

    Example:
        raise ExternalServiceError("Store autosuggest error: 503 Service Unavailable")
    """

    pass


# =============================================================================
# Authentication flow errors
# Hey future me - these are grouped by what the caller can DO about them:
# - ProtocolViolationError: never retry automatically, something is wrong/hostile
# - TransportError: safe to re-run the whole flow, nothing was written
# - CoordinationError: local plumbing broke (surface closed, handle missing)
# =============================================================================


class AuthError(DomainException):
    """Base for everything that can abort an authorization attempt.

    HTTP Status: 400
    """

    pass


class ProtocolViolationError(AuthError):
    """The provider (or someone pretending to be it) broke the protocol."""

    pass


class CsrfMismatchError(ProtocolViolationError):
    """Redirect state did not echo the CSRF token issued for this attempt."""

    def __init__(self, state: str, expected: str) -> None:
        # Only prefixes - full tokens never go into messages or logs
        super().__init__(
            f"OAuth state mismatch (got '{state[:8]}...', expected '{expected[:8]}...'); "
            "authorization aborted"
        )
        self.state = state
        self.expected = expected


class MissingIdentityClaimError(ProtocolViolationError):
    """Token response carried no identity claim."""

    def __init__(self, hop: str, claim: str | None = None) -> None:
        if claim is None:
            message = f"{hop} response contained no identity claims"
        else:
            message = f"{hop} identity claim has no '{claim}'"
        super().__init__(message)
        self.hop = hop
        self.claim = claim


class TransportError(AuthError):
    """Network send/receive/parse failure at one of the exchange hops."""

    def __init__(self, hop: str, reason: str) -> None:
        super().__init__(f"{hop} request failed: {reason}")
        self.hop = hop
        self.reason = reason


class CoordinationError(AuthError):
    """Local coordination between tasks or with the host failed."""

    pass


class RedirectCaptureError(CoordinationError):
    """The redirect could not be captured or parsed."""

    pass


class AuthorizationCancelledError(CoordinationError):
    """The user closed the authorization surface before signing in."""

    def __init__(self, message: str = "Authorization window was closed before sign-in completed") -> None:
        super().__init__(message)


class AuthorizationTimeoutError(CoordinationError):
    """No redirect arrived within the idle timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"No authorization redirect within {timeout:g}s")
        self.timeout = timeout


class HostHandleUnavailableError(CoordinationError):
    """The host handle was never delivered to the waiting task."""

    def __init__(self, message: str = "Host handle is not available") -> None:
        super().__init__(message)


# =============================================================================
# Scheduler errors
# =============================================================================


class SchedulerError(DomainException):
    """Failure reported by the service scheduler."""

    def __init__(self, platform: str, message: str) -> None:
        super().__init__(message)
        self.platform = platform


class PlatformTaskError(SchedulerError):
    """A platform poller raised - wraps the underlying error."""

    def __init__(self, platform: str, cause: BaseException) -> None:
        super().__init__(platform, f"{platform} poller failed: {cause}")
        self.cause = cause


class TaskJoinError(SchedulerError):
    """A platform task could not be joined (cancelled from outside)."""

    def __init__(self, platform: str, reason: str = "task was cancelled") -> None:
        super().__init__(platform, f"{platform} task join failed: {reason}")


__all__ = [
    # Base
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "ExternalServiceError",
    # Auth
    "AuthError",
    "ProtocolViolationError",
    "CsrfMismatchError",
    "MissingIdentityClaimError",
    "TransportError",
    "CoordinationError",
    "RedirectCaptureError",
    "AuthorizationCancelledError",
    "AuthorizationTimeoutError",
    "HostHandleUnavailableError",
    # Scheduler
    "SchedulerError",
    "PlatformTaskError",
    "TaskJoinError",
]
