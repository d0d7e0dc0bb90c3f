"""Git operations module for repository migration."""

from .operations import RepositoryTransporter
from .clone import CloneResult, GitCloner
from .push import GitPusher, PushResult
from .workspace import Workspace

__all__ = [
    'RepositoryTransporter',
    'CloneResult',
    'GitCloner',
    'GitPusher',
    'PushResult',
    'Workspace',
]
