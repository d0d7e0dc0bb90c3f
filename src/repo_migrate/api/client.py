"""GitLab API client implementation."""

import asyncio
import json
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urljoin

import aiohttp
import requests
from loguru import logger
from pydantic import BaseModel

from ..config.config import DestinationConfig
from ..models.group import GroupCreate, Namespace
from ..models.project import Project, ProjectCreate
from .exceptions import (
    GitLabAPIError,
    GitLabAuthenticationError,
    GitLabNotFoundError,
    GitLabPermissionError,
    GitLabRateLimitError,
    GitLabValidationError,
)
from .rate_limiter import RateLimiter


USER_AGENT = 'repo-migrate/0.1.0'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


def encode_path(full_path: str) -> str:
    """URL-encode a namespaced path for use as an API resource id."""
    return quote(full_path.strip('/'), safe='')


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _error_message(status_code: int, data: Any) -> str:
    if isinstance(data, dict):
        message = data.get('message') or data.get('error') or data
        return f'HTTP {status_code}: {message}'
    if data:
        return f'HTTP {status_code}: {data}'
    return f'HTTP {status_code}'


def raise_for_status(status_code: int, headers: Mapping[str, str], data: Any) -> None:
    """Map an HTTP error status to the matching GitLab exception.

    Raises:
        GitLabAPIError: Or one of its subclasses for any status >= 400
    """
    if status_code < 400:
        return

    message = _error_message(status_code, data)

    if status_code == 429:
        retry_after = int(headers.get('Retry-After', 60))
        raise GitLabRateLimitError(
            f'Rate limit exceeded. Retry after {retry_after} seconds',
            retry_after=retry_after,
            status_code=status_code,
            response_data=data,
        )

    if status_code == 401:
        raise GitLabAuthenticationError(
            'Authentication failed', status_code=status_code, response_data=data
        )

    if status_code == 403:
        raise GitLabPermissionError(
            f'Permission denied: {message}', status_code=status_code, response_data=data
        )

    if status_code == 404:
        raise GitLabNotFoundError(
            'Resource not found', status_code=status_code, response_data=data
        )

    if status_code in (400, 409, 422):
        raise GitLabValidationError(
            f'Request rejected: {message}', status_code=status_code, response_data=data
        )

    raise GitLabAPIError(
        f'API request failed: {message}', status_code=status_code, response_data=data
    )


class GitLabClient:
    """GitLab API client with authentication."""

    def __init__(self, config: DestinationConfig):
        """Initialize GitLab client.

        Args:
            config: Destination instance configuration
        """
        self.config = config
        self.base_url = config.url.rstrip('/') + f'/api/{config.api_version}'
        self.rate_limiter = RateLimiter(config.rate_limit_per_second)
        self.session = requests.Session()

        if not config.token:
            raise GitLabAuthenticationError('No authentication token provided')

        self.session.headers.update(self._headers())

        logger.info(f'Initialized GitLab client for {config.url}')

    def _headers(self) -> Dict[str, str]:
        return {
            'Private-Token': self.config.token,
            'Content-Type': 'application/json',
            'User-Agent': USER_AGENT,
        }

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            GitLabAPIError: For various API errors
        """
        headers = dict(response.headers)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = response.text
            raise_for_status(response.status_code, headers, error_data)

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=response.status_code,
            data=data,
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    async def _make_request_async(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> APIResponse:
        """Make asynchronous API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters
            data: Request body data
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        await self.rate_limiter.acquire()

        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        async with aiohttp.ClientSession(
            headers=self._headers(), timeout=timeout
        ) as session:
            try:
                async with session.request(
                    method=method, url=url, params=params, json=data, **kwargs
                ) as response:
                    response_headers = dict(response.headers)
                    response_data = _parse_body(await response.text())

                    raise_for_status(response.status, response_headers, response_data)

                    return APIResponse(
                        status_code=response.status,
                        data=response_data,
                        headers=response_headers,
                        success=200 <= response.status < 300,
                    )

            except aiohttp.ClientError as e:
                logger.error(f'Network error during API request: {e}')
                raise GitLabAPIError(f'Network error: {e}') from e
            except asyncio.TimeoutError as e:
                logger.error(f'Timed out after {self.config.timeout}s: {method} {url}')
                raise GitLabAPIError(
                    f'Request timed out after {self.config.timeout} seconds'
                ) from e

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        self.rate_limiter.acquire_sync()

        try:
            response = self.session.get(
                url, params=params, timeout=self.config.timeout, **kwargs
            )
            return self._handle_response(response)
        except requests.RequestException as e:
            logger.error(f'Network error during GET request: {e}')
            raise GitLabAPIError(f'Network error: {e}') from e

    async def get_async(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous GET request."""
        return await self._make_request_async('GET', endpoint, params=params, **kwargs)

    async def post_async(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous POST request."""
        return await self._make_request_async('POST', endpoint, data=data, **kwargs)

    async def get_group(self, full_path: str) -> Namespace:
        """Look up a group by its full path.

        Raises:
            GitLabNotFoundError: If no group has this path
            GitLabAPIError: For any other failure
        """
        response = await self.get_async(f'/groups/{encode_path(full_path)}')
        return Namespace(**response.data)

    async def create_group(self, group: GroupCreate) -> Namespace:
        """Create a group (root level when ``parent_id`` is unset)."""
        response = await self.post_async(
            '/groups', data=group.model_dump(exclude_none=True)
        )
        return Namespace(**response.data)

    async def get_project(self, full_path: str) -> Project:
        """Look up a project by its full ``namespace/.../name`` path."""
        response = await self.get_async(f'/projects/{encode_path(full_path)}')
        return Project(**response.data)

    async def create_project(self, project: ProjectCreate) -> Project:
        """Create a project in the given namespace."""
        response = await self.post_async(
            '/projects', data=project.model_dump(exclude_none=True)
        )
        return Project(**response.data)

    def test_connection(self) -> bool:
        """Test connection to GitLab instance.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = self.get('/user')
            return response.success
        except GitLabAPIError as e:
            logger.error(f'Connection test failed: {e}')
            return False

    def get_version(self) -> Optional[str]:
        """Get GitLab version.

        Returns:
            GitLab version string or None if unavailable
        """
        try:
            response = self.get('/version')
            if response.success and response.data:
                return response.data.get('version')
        except GitLabAPIError as e:
            logger.warning(f'Could not retrieve GitLab version: {e}')

        return None

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.info('GitLab client session closed')
