"""Custom exception classes for the Drive relay pipeline.

Each network stage of a relay run has its own exception type. All of them
are terminal for the run: nothing is retried, and the status code and raw
body text returned by the failing party are kept on the exception for
diagnosis.
"""

from typing import List, Optional


class RelayError(Exception):
    """Base class for failures of a relay stage.

    Attributes:
        stage: Pipeline stage that failed ("auth", "session", "source", "upload").
        status_code: HTTP status returned by the failing party, if any.
        body: Raw response body text returned by the failing party, if any.
    """

    stage = "relay"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message}: {status_code} {body or ''}".rstrip()
        super().__init__(message)


class AuthError(RelayError):
    """Raised when the refresh token cannot be exchanged for an access token.

    This typically occurs when:
    - The refresh token has been revoked or has expired
    - The OAuth2 client id or secret is wrong
    - The token endpoint is unreachable
    """

    stage = "auth"


class SessionError(RelayError):
    """Raised when a resumable upload session cannot be opened.

    This typically occurs when:
    - The parent folder id is invalid or not writable
    - The access token lacks Drive scope
    - Drive answered 2xx without a Location header
    """

    stage = "session"


class SourceFetchError(RelayError):
    """Raised when the source resource cannot be read.

    Covers both failures before the transfer starts (non-2xx, no body) and
    read failures in the middle of the stream.
    """

    stage = "source"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        bytes_transferred: int = 0,
    ) -> None:
        self.bytes_transferred = bytes_transferred
        super().__init__(message, status_code=status_code, body=body)


class UploadError(RelayError):
    """Raised when Drive rejects the byte stream written to the session."""

    stage = "upload"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        bytes_transferred: int = 0,
    ) -> None:
        self.bytes_transferred = bytes_transferred
        super().__init__(message, status_code=status_code, body=body)


class ConfigurationError(Exception):
    """Raised when required run configuration is missing.

    Checked before any network call is attempted.

    Attributes:
        missing: Names of every missing piece of configuration.
    """

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")
