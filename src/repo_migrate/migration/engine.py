"""Migration engine - main entry point for migration operations."""

import asyncio
from typing import List, Optional

from loguru import logger

from ..api.client import GitLabClient
from ..config.config import Config
from ..git.operations import RepositoryTransporter
from ..models.task import MigrationTask
from .namespace import NamespaceResolver
from .orchestrator import MigrationOrchestrator, MigrationSummary
from .project import ProjectProvisioner
from .validator import PathValidator, ValidationResult


class MigrationEngine:
    """Wires the destination client and the pipeline components from a configuration."""

    def __init__(self, config: Config, client: Optional[GitLabClient] = None):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            client: Destination client (built from ``config.destination`` if omitted)
        """
        self.config = config
        self.logger = logger.bind(component='MigrationEngine')

        self.client = client or GitLabClient(config.destination)
        self.validator = PathValidator()
        self.transporter = RepositoryTransporter(config.git)
        self.orchestrator = MigrationOrchestrator(
            resolver=NamespaceResolver(
                self.client, config.migration.group_description
            ),
            provisioner=ProjectProvisioner(
                self.client, config.migration.project_description
            ),
            transporter=self.transporter,
            validator=self.validator,
            max_workers=config.migration.max_workers,
        )

    def tasks(self) -> List[MigrationTask]:
        return self.config.tasks()

    async def migrate(self) -> MigrationSummary:
        """Run every configured task.

        Raises:
            ConnectionError: If the destination or git is unavailable
        """
        if self.config.migration.dry_run:
            return await self.dry_run()

        self.logger.info('Starting repository migration')

        try:
            await self._test_connectivity()
            return await self.orchestrator.run(self.tasks())
        finally:
            self.client.close()

    async def dry_run(self) -> MigrationSummary:
        """Validate every task and report what would happen, without side effects."""
        self.logger.info('Starting repository migration dry run')
        try:
            return await self.orchestrator.run(self.tasks(), dry_run=True)
        finally:
            self.client.close()

    def validate_paths(self) -> List[ValidationResult]:
        """Validate every configured destination path."""
        return [self.validator.validate(task.destination_path) for task in self.tasks()]

    async def _test_connectivity(self) -> None:
        """Test connectivity to the destination and availability of git.

        Raises:
            ConnectionError: If connectivity test fails
        """
        self.logger.info('Testing connectivity to the destination GitLab instance')

        # The checks use the blocking requests session; keep them off the loop.
        if not await asyncio.to_thread(self.client.test_connection):
            raise ConnectionError('Cannot connect to destination GitLab instance')

        if not await self.transporter.check_git_available():
            raise ConnectionError('git executable is not available')

        version = await asyncio.to_thread(self.client.get_version)
        self.logger.info(
            'Connectivity tests passed' + (f' (GitLab {version})' if version else '')
        )
