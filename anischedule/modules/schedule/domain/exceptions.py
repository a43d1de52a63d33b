"""Schedule domain exceptions."""

from fastapi import status

from anischedule.core.domain.exceptions import DomainException, ExternalServiceError


class UpstreamError(ExternalServiceError):
    """AniList returned a non-2xx status, a malformed body or no media."""

    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class UpstreamThrottledError(UpstreamError):
    """AniList answered HTTP 429."""

    http_status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "UPSTREAM_THROTTLED"
    public_message = "Upstream rate limit reached"

    def __init__(self, message: str = "AniList rate limit hit (429)"):
        super().__init__(message, status_code=429)


class CredentialError(ExternalServiceError):
    """The upstream access token could not be obtained."""

    error_code = "CREDENTIAL_ERROR"


class BacklogFetchError(ExternalServiceError):
    """Backlog list could not be fetched or parsed. Fatal to a schedule build."""

    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "SCHEDULE_BUILD_FAILED"
    public_message = "Failed to build schedule"


class PassthroughError(DomainException):
    """Forwarding a raw GraphQL request failed."""

    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "PASSTHROUGH_FAILED"
    public_message = "AniList proxy failed"
