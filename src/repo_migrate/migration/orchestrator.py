"""Migration orchestrator: drives each task through the pipeline and isolates failures."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..errors import ErrorKind, MigrationError
from ..git.operations import RepositoryTransporter
from ..git.workspace import Workspace
from ..models.project import Project
from ..models.task import MigrationTask
from .namespace import NamespaceResolver
from .project import ProjectProvisioner
from .validator import PathValidator, ValidationResult


class TaskStep(str, Enum):
    """Pipeline steps, in execution order."""

    VALIDATE = 'validate'
    CLONE = 'clone'
    PROVISION = 'provision'
    PUSH = 'push'
    CLEANUP = 'cleanup'


class TaskStatus(str, Enum):
    """Task status enumeration."""

    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    FAILED = 'failed'
    SKIPPED = 'skipped'


# Error kind recorded when an unexpected exception escapes a step.
STEP_ERROR_KINDS = {
    TaskStep.VALIDATE: ErrorKind.VALIDATION,
    TaskStep.CLONE: ErrorKind.CLONE,
    TaskStep.PROVISION: ErrorKind.PROJECT_PROVISION,
    TaskStep.PUSH: ErrorKind.PUSH,
    TaskStep.CLEANUP: ErrorKind.CLEANUP,
}


@dataclass
class TaskResult:
    """Outcome of one migration task."""

    task: MigrationTask
    status: TaskStatus = TaskStatus.PENDING
    step: Optional[TaskStep] = None
    error: Optional[MigrationError] = None
    project: Optional[Project] = None
    project_created: bool = False
    created_namespaces: List[str] = field(default_factory=list)
    branches_pushed: int = 0
    tags_pushed: int = 0
    cleanup_error: Optional[MigrationError] = None
    notes: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.SKIPPED)

    @property
    def failed_step(self) -> Optional[TaskStep]:
        return self.step if self.status == TaskStatus.FAILED else None

    def fail(self, step: TaskStep, error: MigrationError) -> 'TaskResult':
        self.status = TaskStatus.FAILED
        self.step = step
        self.error = error
        return self


@dataclass
class MigrationSummary:
    """Summary of a batch run."""

    started_at: datetime
    completed_at: Optional[datetime] = None
    results: List[TaskResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.status == TaskStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == TaskStatus.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == TaskStatus.SKIPPED)

    @property
    def failures(self) -> List[TaskResult]:
        return [r for r in self.results if r.status == TaskStatus.FAILED]


class MigrationOrchestrator:
    """Runs migration tasks through VALIDATE, CLONE, PROVISION, PUSH and CLEANUP."""

    def __init__(
        self,
        resolver: NamespaceResolver,
        provisioner: ProjectProvisioner,
        transporter: RepositoryTransporter,
        validator: Optional[PathValidator] = None,
        max_workers: int = 1,
    ):
        """Initialize migration orchestrator.

        Args:
            resolver: Group chain resolver
            provisioner: Project provisioner
            transporter: Clone/push pipeline
            validator: Destination path validator
            max_workers: Maximum tasks processed concurrently
        """
        self.resolver = resolver
        self.provisioner = provisioner
        self.transporter = transporter
        self.validator = validator or PathValidator()
        self.max_workers = max_workers
        self.logger = logger.bind(component='MigrationOrchestrator')
        self._destination_locks: Dict[str, asyncio.Lock] = {}

    async def run(
        self, tasks: Sequence[MigrationTask], dry_run: bool = False
    ) -> MigrationSummary:
        """Process every task; a failing task never stops the others.

        Args:
            tasks: Tasks in the order they were configured
            dry_run: Only validate and report what would be done

        Returns:
            Migration summary, results in task order
        """
        summary = MigrationSummary(started_at=datetime.now())
        self.logger.info(
            f'Migrating {len(tasks)} repositories with {self.max_workers} worker(s)'
            + (' (dry run)' if dry_run else '')
        )

        semaphore = asyncio.Semaphore(self.max_workers)

        async def process(task: MigrationTask) -> TaskResult:
            async with semaphore:
                if dry_run:
                    return self.plan_task(task)
                return await self.migrate_task(task)

        summary.results = list(await asyncio.gather(*(process(t) for t in tasks)))
        summary.completed_at = datetime.now()

        self.logger.info(
            f'Migration completed: {summary.successful} successful, '
            f'{summary.failed} failed, {summary.skipped} skipped'
        )
        return summary

    async def migrate_task(self, task: MigrationTask) -> TaskResult:
        """Migrate one repository. Never raises for task-level failures."""
        result = TaskResult(task=task, status=TaskStatus.IN_PROGRESS)
        self.logger.info(f'Start migration {task.source_url}')

        try:
            await self._run_pipeline(task, result)
        except Exception as e:
            step = result.step or TaskStep.VALIDATE
            self.logger.exception(f'Unexpected error during {step.value}: {e}')
            result.fail(step, MigrationError(STEP_ERROR_KINDS[step], str(e), e))
        finally:
            result.completed_at = datetime.now()
            if result.status == TaskStatus.FAILED:
                self.logger.error(f'Migration of {task.source_url} failed: {result.error}')
            self.logger.info(
                f'End of migration {task.source_url}: {result.status.value}'
            )

        return result

    def plan_task(self, task: MigrationTask) -> TaskResult:
        """Validate a task and describe the actions a real run would take."""
        result = TaskResult(task=task, status=TaskStatus.IN_PROGRESS)
        result.step = TaskStep.VALIDATE
        validation = self.validator.validate(task.destination_path)
        if not validation.success:
            self.logger.warning(f'Dry run: {validation.error}')
            result.fail(TaskStep.VALIDATE, validation.error)
        else:
            project_path = f'{validation.namespace_path}/{validation.project_name}'
            result.notes = [
                f'clone --mirror {task.source_url}',
                f'resolve or create groups {validation.namespace_path}',
                f'create or reuse project {project_path}',
                'force-push all branches and tags',
            ]
            for note in result.notes:
                self.logger.info(f'Dry run: would {note}')
            result.status = TaskStatus.SKIPPED
        result.completed_at = datetime.now()
        return result

    async def _run_pipeline(self, task: MigrationTask, result: TaskResult) -> None:
        result.step = TaskStep.VALIDATE
        validation = self.validator.validate(task.destination_path)
        if not validation.success:
            result.fail(TaskStep.VALIDATE, validation.error)
            return

        async with self._destination_lock(task.destination_path):
            workspace: Optional[Workspace] = None
            result.step = TaskStep.CLONE
            try:
                async with self.transporter.workspace() as workspace:
                    await self._transfer(task, validation, workspace, result)
            finally:
                if workspace is not None and workspace.cleanup_error:
                    result.cleanup_error = workspace.cleanup_error
                    self.logger.warning(f'Cleanup problem: {workspace.cleanup_error}')

        if result.status == TaskStatus.IN_PROGRESS:
            result.step = TaskStep.CLEANUP
            result.status = TaskStatus.COMPLETED

    async def _transfer(
        self,
        task: MigrationTask,
        validation: ValidationResult,
        workspace: Workspace,
        result: TaskResult,
    ) -> None:
        result.step = TaskStep.CLONE
        clone = await self.transporter.clone_mirror(
            task.source_url, task.source_credentials, workspace
        )
        if not clone.success:
            result.fail(TaskStep.CLONE, clone.error)
            return

        result.step = TaskStep.PROVISION
        namespaces = await self.resolver.resolve_or_create(validation.namespace_path)
        result.created_namespaces = [group.full_path for group in namespaces.created]
        if not namespaces.success:
            result.fail(TaskStep.PROVISION, namespaces.error)
            return

        provision = await self.provisioner.get_or_create(
            namespaces.namespace, validation.project_name
        )
        if not provision.success:
            result.fail(TaskStep.PROVISION, provision.error)
            return
        result.project = provision.project
        result.project_created = provision.created

        result.step = TaskStep.PUSH
        push = await self.transporter.push_mirror(
            workspace,
            provision.project.http_url_to_repo,
            task.destination_credentials.token,
        )
        if not push.success:
            result.fail(TaskStep.PUSH, push.error)
            return
        result.branches_pushed = push.branches_pushed
        result.tags_pushed = push.tags_pushed

    def _destination_lock(self, destination_path: str) -> asyncio.Lock:
        # GitLab paths are case-insensitive
        key = destination_path.strip('/').lower()
        if key not in self._destination_locks:
            self._destination_locks[key] = asyncio.Lock()
        return self._destination_locks[key]
