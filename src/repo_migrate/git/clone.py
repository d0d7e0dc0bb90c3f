"""Git repository cloning operations."""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ..config.config import GitConfig
from ..errors import ErrorKind, MigrationError
from ..models.task import SourceCredentials
from .command import authenticated_url, mask_credentials, run_git_command
from .workspace import REPOSITORY_DIR_NAME, Workspace


@dataclass
class CloneResult:
    """Result of a mirror clone."""

    workspace: Optional[Workspace] = None
    error: Optional[MigrationError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class GitCloner:
    """Mirror-clones source repositories into workspaces."""

    def __init__(self, config: GitConfig):
        """Initialize git cloner.

        Args:
            config: Git configuration
        """
        self.config = config
        self.logger = logger.bind(component='GitCloner')

    async def clone_mirror(
        self,
        source_url: str,
        credentials: SourceCredentials,
        workspace: Workspace,
    ) -> CloneResult:
        """Clone every ref of ``source_url`` into ``workspace``.

        Args:
            source_url: Source repository URL
            credentials: Username/password for the source server
            workspace: Empty workspace to clone into

        Returns:
            Clone result; the workspace is set even when the clone failed
        """
        clone_url = authenticated_url(
            source_url, credentials.username, credentials.password
        )
        self.logger.info(f'Cloning {mask_credentials(source_url)} (mirror)')

        result = await run_git_command(
            ['clone', '--mirror', clone_url, REPOSITORY_DIR_NAME],
            cwd=workspace.path,
            timeout=self.config.timeout,
            ssl_verify=self.config.ssl_verify,
        )

        if not result.success:
            message = (
                f'Git clone of {mask_credentials(source_url)} failed: '
                f'{result.describe()}'
            )
            self.logger.error(message)
            return CloneResult(
                workspace=workspace,
                error=MigrationError(ErrorKind.CLONE, message),
            )

        self.logger.info(f"Repository cloned to: '{workspace.repository_path}'")
        return CloneResult(workspace=workspace)
