"""Meeting provider exceptions."""

from core.exceptions import ExternalServiceError


class MeetingProviderError(ExternalServiceError):
    """The meeting provider is misconfigured or rejected the request."""

    default_error_code = "MEETING_PROVIDER_ERROR"
