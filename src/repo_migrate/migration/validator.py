"""Destination path validation."""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from ..errors import ErrorKind, MigrationError


FORBIDDEN_CHARACTERS = ('_', '.')


@dataclass(frozen=True)
class NamespacePath:
    """Ordered group segments leading to a project, e.g. ``('team-a', 'team-b')``."""

    segments: Tuple[str, ...]

    @property
    def full_path(self) -> str:
        return '/'.join(self.segments)

    def prefixes(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(segment, full_path_so_far)`` from the root down."""
        for depth, segment in enumerate(self.segments, start=1):
            yield segment, '/'.join(self.segments[:depth])

    def __str__(self) -> str:
        return self.full_path


@dataclass
class ValidationResult:
    """Outcome of validating a destination path."""

    namespace_path: Optional[NamespacePath] = None
    project_name: Optional[str] = None
    error: Optional[MigrationError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class PathValidator:
    """Checks destination paths against GitLab naming rules."""

    def validate(self, path: str) -> ValidationResult:
        """Split ``path`` into groups and a project name, or explain why it is invalid.

        ``teamA/teamB/repo1`` becomes groups ``teamA/teamB`` and project ``repo1``;
        ``repo1`` becomes group ``repo1`` holding project ``repo1``.
        """
        segments = path.split('/') if path else []

        if any(not segment for segment in segments) or not segments:
            return self._invalid(f"Destination path '{path}' has an empty segment")

        for segment in segments:
            if any(char in segment for char in FORBIDDEN_CHARACTERS):
                return self._invalid(
                    f"Group or project name '{segment}' in '{path}' "
                    "cannot contain '_' or '.' characters"
                )

        # A lone segment names both the group and the project inside it.
        if len(segments) == 1:
            return ValidationResult(
                namespace_path=NamespacePath((segments[0],)),
                project_name=segments[0],
            )

        return ValidationResult(
            namespace_path=NamespacePath(tuple(segments[:-1])),
            project_name=segments[-1],
        )

    @staticmethod
    def _invalid(message: str) -> ValidationResult:
        return ValidationResult(error=MigrationError(ErrorKind.VALIDATION, message))
