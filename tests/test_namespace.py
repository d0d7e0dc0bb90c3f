"""Tests for group chain resolution."""

from unittest.mock import AsyncMock, Mock

import pytest

from conftest import FakeGitLab, make_group
from repo_migrate.api.exceptions import (
    GitLabAPIError,
    GitLabNotFoundError,
    GitLabPermissionError,
    GitLabRateLimitError,
    GitLabValidationError,
)
from repo_migrate.errors import ErrorKind
from repo_migrate.migration.namespace import NamespaceResolver
from repo_migrate.migration.validator import NamespacePath


class TestNamespaceResolver:
    """Test group lookup and creation."""

    @pytest.mark.asyncio
    async def test_creates_missing_chain(self):
        """Test that absent groups are created root first with parent ids."""
        api = FakeGitLab()
        resolver = NamespaceResolver(api)

        result = await resolver.resolve_or_create(NamespacePath(('teamA', 'teamB')))

        assert result.success
        assert [g.full_path for g in result.created] == ['teamA', 'teamA/teamB']
        assert api.created_groups[0].parent_id is None
        assert api.created_groups[1].parent_id == result.created[0].id
        assert api.created_groups[1].visibility == 'private'
        assert api.created_groups[1].description == 'Description for teamB'
        assert result.namespace.full_path == 'teamA/teamB'

    @pytest.mark.asyncio
    async def test_idempotent(self):
        """Test that a second resolution finds the same group and creates nothing."""
        api = FakeGitLab()
        resolver = NamespaceResolver(api)
        path = NamespacePath(('teamA', 'teamB'))

        first = await resolver.resolve_or_create(path)
        second = await resolver.resolve_or_create(path)

        assert second.success
        assert second.namespace.id == first.namespace.id
        assert second.created == []
        assert len(api.created_groups) == 2

    @pytest.mark.asyncio
    async def test_partial_chain(self):
        api = FakeGitLab(groups=[make_group(1, 'teamA')])
        resolver = NamespaceResolver(api)

        result = await resolver.resolve_or_create(NamespacePath(('teamA', 'teamB')))

        assert [g.full_path for g in result.created] == ['teamA/teamB']
        assert api.created_groups[0].parent_id == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'error',
        [
            GitLabPermissionError('Permission denied', status_code=403),
            GitLabRateLimitError('Rate limit exceeded', retry_after=5, status_code=429),
            GitLabAPIError('Network error'),
        ],
    )
    async def test_lookup_failure_creates_nothing(self, error):
        """Test that only a 404 on lookup leads to group creation."""
        client = Mock()
        client.get_group = AsyncMock(side_effect=error)
        client.create_group = AsyncMock()
        resolver = NamespaceResolver(client)

        result = await resolver.resolve_or_create(NamespacePath(('teamA',)))

        assert not result.success
        assert result.error.kind == ErrorKind.NAMESPACE_RESOLUTION
        assert result.error.cause is error
        client.create_group.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_creation_resolved_by_lookup(self):
        """Test that a 'taken' response on creation falls back to a lookup."""
        existing = make_group(7, 'teamA')
        client = Mock()
        client.get_group = AsyncMock(
            side_effect=[GitLabNotFoundError('Resource not found', status_code=404), existing]
        )
        client.create_group = AsyncMock(
            side_effect=GitLabValidationError(
                'Request rejected',
                status_code=400,
                response_data={'message': {'path': ['has already been taken']}},
            )
        )
        resolver = NamespaceResolver(client)

        result = await resolver.resolve_or_create(NamespacePath(('teamA',)))

        assert result.success
        assert result.namespace is existing
        assert result.created == []

    @pytest.mark.asyncio
    async def test_creation_rejected_for_other_reason(self):
        client = Mock()
        client.get_group = AsyncMock(
            side_effect=GitLabNotFoundError('Resource not found', status_code=404)
        )
        client.create_group = AsyncMock(
            side_effect=GitLabPermissionError('Permission denied', status_code=403)
        )
        resolver = NamespaceResolver(client)

        result = await resolver.resolve_or_create(NamespacePath(('teamA', 'teamB')))

        assert not result.success
        assert result.error.kind == ErrorKind.NAMESPACE_RESOLUTION
        assert client.create_group.await_count == 1
