"""Failure taxonomy for an analysis run."""

from typing import Optional


class SourceMindError(Exception):
    """Base exception. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(SourceMindError):
    """Raised when the repository identifier is not `owner/name`."""


class MissingCredential(SourceMindError):
    """Raised when no Gemini API key is configured."""


class NotFound(SourceMindError):
    """Raised when the repository does not exist or is private."""


class RateLimited(SourceMindError):
    """Raised when GitHub denies access, usually due to quota exhaustion."""


class UpstreamError(SourceMindError):
    """Raised for any other non-success GitHub response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AnalysisRequestFailed(SourceMindError):
    """Raised when the Gemini endpoint answers with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResponse(SourceMindError):
    """Raised when the model returns no content."""


class MalformedResponse(SourceMindError):
    """Raised when the model output is not JSON matching the analysis schema."""


class UnexpectedError(SourceMindError):
    pass
