"""Data models for migration tasks and GitLab entities."""

from .task import DestinationCredentials, MigrationTask, SourceCredentials
from .group import GroupCreate, Namespace
from .project import Project, ProjectCreate

__all__ = [
    'DestinationCredentials',
    'MigrationTask',
    'SourceCredentials',
    'GroupCreate',
    'Namespace',
    'Project',
    'ProjectCreate',
]
