"""GitLab API exceptions."""

from typing import Any, Optional


class GitLabAPIError(Exception):
    """Base exception for GitLab API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        """Initialize GitLab API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class GitLabAuthenticationError(GitLabAPIError):
    """Authentication error with GitLab API."""

    pass


class GitLabRateLimitError(GitLabAPIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class GitLabNotFoundError(GitLabAPIError):
    """Resource not found error."""

    pass


class GitLabPermissionError(GitLabAPIError):
    """Permission denied error."""

    pass


class GitLabValidationError(GitLabAPIError):
    """The request was rejected (400, 409 or 422), usually with per-field messages."""

    TAKEN_MARKERS = ('has already been taken', 'already exists', 'already taken')

    def is_already_taken(self) -> bool:
        """Whether GitLab rejected the request because the name or path is in use."""
        if self.status_code == 409:
            return True
        text = str(self.response_data or '').lower() + ' ' + str(self).lower()
        return any(marker in text for marker in self.TAKEN_MARKERS)
