"""Migration pipeline: validation, provisioning and orchestration."""

from .validator import NamespacePath, PathValidator, ValidationResult
from .namespace import NamespaceResolver, NamespaceResult
from .project import ProjectProvisioner, ProvisionResult
from .orchestrator import (
    MigrationOrchestrator,
    MigrationSummary,
    TaskResult,
    TaskStatus,
    TaskStep,
)
from .engine import MigrationEngine

__all__ = [
    'NamespacePath',
    'PathValidator',
    'ValidationResult',
    'NamespaceResolver',
    'NamespaceResult',
    'ProjectProvisioner',
    'ProvisionResult',
    'MigrationOrchestrator',
    'MigrationSummary',
    'TaskResult',
    'TaskStatus',
    'TaskStep',
    'MigrationEngine',
]
