"""GitLab REST API access."""

from .client import APIResponse, GitLabClient, encode_path
from .exceptions import (
    GitLabAPIError,
    GitLabAuthenticationError,
    GitLabNotFoundError,
    GitLabPermissionError,
    GitLabRateLimitError,
    GitLabValidationError,
)
from .rate_limiter import RateLimiter

__all__ = [
    'APIResponse',
    'GitLabClient',
    'encode_path',
    'GitLabAPIError',
    'GitLabAuthenticationError',
    'GitLabNotFoundError',
    'GitLabPermissionError',
    'GitLabRateLimitError',
    'GitLabValidationError',
    'RateLimiter',
]
