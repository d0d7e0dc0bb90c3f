"""Tagged errors returned by migration steps."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """What went wrong, and at which step."""

    CONFIGURATION = 'configuration'
    VALIDATION = 'validation'
    CLONE = 'clone'
    NAMESPACE_RESOLUTION = 'namespace_resolution'
    PROJECT_PROVISION = 'project_provision'
    PUSH = 'push'
    CLEANUP = 'cleanup'


@dataclass(frozen=True)
class MigrationError:
    """A step failure carried as a value rather than raised.

    ``cause`` keeps the lower-level exception (API error, OSError, timeout)
    when there is one, so callers can inspect it.
    """

    kind: ErrorKind
    message: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        return f'{self.kind.value}: {self.message}'
