class ServiceError(Exception):
    """Base exception for failures reported to API callers as `{error, message}`."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(ServiceError):
    """Raised when the caller's request is malformed (missing file, missing target language)."""

    status_code = 400
    error = "Invalid request"


class CredentialError(ServiceError):
    """Base exception for credential resolution failures."""

    status_code = 401
    error = "API key not provided"


class MissingCredentialError(CredentialError):
    """Raised when a caller-supplied key was expected but not sent."""

    pass


class CredentialConfigurationError(CredentialError):
    """Raised when the server is expected to hold a key but none was configured."""

    status_code = 500
    error = "Server API key not configured"


class UpstreamError(ServiceError):
    """
    Raised when DeepL answers with a non-success status.
    The provider status is propagated; the body is kept verbatim as the message.
    """

    error = "DeepL request failed"

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, error=error, status_code=status_code)
        self.upstream_status = status_code


class ProviderUnavailableError(UpstreamError):
    """Raised when DeepL could not be reached at all (DNS, connect, read timeout...)."""

    status_code = 502
    error = "DeepL service unavailable"


class TranslationFailedError(UpstreamError):
    """Raised when DeepL reports status `error` for an uploaded document."""

    status_code = 500
    error = "Translation failed"


class TranslationTimeoutError(ServiceError):
    """Raised when the polling budget is exhausted before DeepL reports `done`."""

    status_code = 408
    error = "Translation timeout"


class InternalError(ServiceError):
    """Raised for unexpected local failures, e.g. temporary file I/O."""

    status_code = 500
    error = "Internal server error"
