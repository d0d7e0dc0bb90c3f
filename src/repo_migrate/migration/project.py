"""Idempotent provisioning of the destination project."""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ..api.client import GitLabClient
from ..api.exceptions import GitLabAPIError, GitLabValidationError
from ..errors import ErrorKind, MigrationError
from ..models.group import Namespace
from ..models.project import Project, ProjectCreate


@dataclass
class ProvisionResult:
    """The destination project and whether this call created it."""

    project: Optional[Project] = None
    created: bool = False
    error: Optional[MigrationError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class ProjectProvisioner:
    """Creates a project, or fetches it when GitLab says it already exists."""

    def __init__(self, client: GitLabClient, description: str = 'Migrated project'):
        self.client = client
        self.description = description
        self.logger = logger.bind(component='ProjectProvisioner')

    async def get_or_create(self, namespace: Namespace, name: str) -> ProvisionResult:
        """Return the project ``name`` inside ``namespace``, creating it if needed.

        Args:
            namespace: Resolved parent group
            name: Project name (also used as its path)

        Returns:
            Provision result
        """
        full_path = f'{namespace.full_path}/{name}'
        payload = ProjectCreate(
            name=name,
            path=name,
            namespace_id=namespace.id,
            description=self.description,
        )

        try:
            project = await self.client.create_project(payload)
            self.logger.info(f'Created GitLab project: {project.http_url_to_repo}')
            return ProvisionResult(project=project, created=True)
        except GitLabValidationError as e:
            if not e.is_already_taken():
                return self._fail(f'Creation of project {full_path} was rejected: {e}', e)
            self.logger.info(f'Project {full_path} already exists')
        except GitLabAPIError as e:
            return self._fail(f'Creation of project {full_path} failed: {e}', e)

        try:
            project = await self.client.get_project(full_path)
        except GitLabAPIError as e:
            return self._fail(f'Project {full_path} exists but cannot be read: {e}', e)

        return ProvisionResult(project=project, created=False)

    def _fail(self, message: str, cause: Exception) -> ProvisionResult:
        self.logger.error(message)
        return ProvisionResult(
            error=MigrationError(ErrorKind.PROJECT_PROVISION, message, cause)
        )
