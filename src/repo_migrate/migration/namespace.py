"""Resolving or creating the destination group chain."""

from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from ..api.client import GitLabClient
from ..api.exceptions import (
    GitLabAPIError,
    GitLabNotFoundError,
    GitLabValidationError,
)
from ..errors import ErrorKind, MigrationError
from ..models.group import GroupCreate, Namespace
from .validator import NamespacePath


@dataclass
class NamespaceResult:
    """Leaf group of a resolved path, plus the groups created on the way."""

    namespace: Optional[Namespace] = None
    created: List[Namespace] = field(default_factory=list)
    error: Optional[MigrationError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class NamespaceResolver:
    """Walks a namespace path, looking up each group and creating missing ones.

    Only a ``404`` on lookup counts as "group does not exist". Authentication,
    permission, rate-limit and transport failures stop the walk and are
    reported as ``NAMESPACE_RESOLUTION`` errors, so no group is created on the
    strength of an ambiguous lookup.
    """

    def __init__(
        self,
        client: GitLabClient,
        description_template: str = 'Description for {name}',
    ):
        self.client = client
        self.description_template = description_template
        self.logger = logger.bind(component='NamespaceResolver')

    async def resolve_or_create(self, path: NamespacePath) -> NamespaceResult:
        """Return the group for the deepest segment of ``path``.

        Args:
            path: Group segments, root first

        Returns:
            Namespace result
        """
        result = NamespaceResult()
        parent: Optional[Namespace] = None

        for segment, full_path in path.prefixes():
            try:
                group = await self.client.get_group(full_path)
                self.logger.info(f'Found group: {full_path}')
            except GitLabNotFoundError:
                group = await self._create(segment, full_path, parent, result)
                if group is None:
                    return result
            except GitLabAPIError as e:
                return self._fail(result, f'Lookup of group {full_path} failed: {e}', e)

            parent = group

        result.namespace = parent
        return result

    async def _create(
        self,
        segment: str,
        full_path: str,
        parent: Optional[Namespace],
        result: NamespaceResult,
    ) -> Optional[Namespace]:
        self.logger.info(f'Create new group: {full_path}')
        payload = GroupCreate(
            name=segment,
            path=segment,
            description=self.description_template.format(name=segment),
            visibility='private',
            parent_id=parent.id if parent else None,
        )

        try:
            group = await self.client.create_group(payload)
        except GitLabValidationError as e:
            if not e.is_already_taken():
                self._fail(result, f'Creation of group {full_path} was rejected: {e}', e)
                return None
            # Created by someone else between our lookup and create.
            self.logger.info(f'Group {full_path} appeared concurrently, looking it up')
            try:
                return await self.client.get_group(full_path)
            except GitLabAPIError as lookup_error:
                self._fail(
                    result,
                    f'Group {full_path} exists but cannot be read: {lookup_error}',
                    lookup_error,
                )
                return None
        except GitLabAPIError as e:
            self._fail(result, f'Creation of group {full_path} failed: {e}', e)
            return None

        result.created.append(group)
        return group

    def _fail(
        self, result: NamespaceResult, message: str, cause: Exception
    ) -> NamespaceResult:
        self.logger.error(message)
        result.error = MigrationError(ErrorKind.NAMESPACE_RESOLUTION, message, cause)
        return result
