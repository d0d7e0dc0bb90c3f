"""Repository transfer: mirror clone from the source, forced push to the destination."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger

from ..config.config import GitConfig
from ..errors import MigrationError
from ..models.task import SourceCredentials
from .clone import CloneResult, GitCloner
from .command import run_git_command
from .push import GitPusher, PushResult
from .workspace import Workspace, create_workspace, remove_workspace


class RepositoryTransporter:
    """Moves the full ref set of a repository through a local workspace."""

    def __init__(self, config: Optional[GitConfig] = None):
        """Initialize the transporter.

        Args:
            config: Git configuration options
        """
        self.config = config or GitConfig()
        self.cloner = GitCloner(self.config)
        self.pusher = GitPusher(self.config)
        self.logger = logger.bind(component='RepositoryTransporter')

    def create_workspace(self) -> Workspace:
        """Create a fresh, uniquely named workspace."""
        return create_workspace(self.config.temp_dir)

    def release(self, workspace: Workspace) -> Optional[MigrationError]:
        """Delete a workspace; the error, if any, is returned and recorded on it."""
        workspace.cleanup_error = remove_workspace(workspace)
        return workspace.cleanup_error

    @asynccontextmanager
    async def workspace(self) -> AsyncIterator[Workspace]:
        """Scope a workspace: created on entry, always removed on exit."""
        workspace = self.create_workspace()
        try:
            yield workspace
        finally:
            self.release(workspace)

    async def clone_mirror(
        self,
        source_url: str,
        credentials: SourceCredentials,
        workspace: Optional[Workspace] = None,
    ) -> CloneResult:
        """Mirror-clone ``source_url``.

        When no workspace is given a new one is created; the caller owns it
        and must pass it to :meth:`release`.
        """
        if workspace is None:
            workspace = self.create_workspace()
        return await self.cloner.clone_mirror(source_url, credentials, workspace)

    async def push_mirror(
        self, workspace: Workspace, destination_url: str, token: str
    ) -> PushResult:
        """Force-push all branches and tags of the workspace to ``destination_url``."""
        return await self.pusher.push_mirror(workspace, destination_url, token)

    async def check_git_available(self) -> bool:
        """Check if the git executable can be run."""
        result = await run_git_command(['--version'], cwd='.', timeout=30)
        return result.success
