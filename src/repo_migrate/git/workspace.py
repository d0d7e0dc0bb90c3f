"""Ephemeral local workspaces holding one mirror clone each."""

import os
import shutil
import stat
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from ..errors import ErrorKind, MigrationError


REPOSITORY_DIR_NAME = 'repository.git'


@dataclass
class Workspace:
    """A uniquely named temporary directory owned by a single task."""

    path: str
    cleanup_error: Optional[MigrationError] = None

    @property
    def repository_path(self) -> str:
        """Location of the bare mirror inside the workspace."""
        return os.path.join(self.path, REPOSITORY_DIR_NAME)

    def exists(self) -> bool:
        return os.path.isdir(self.path)


def create_workspace(temp_dir: Optional[str] = None) -> Workspace:
    """Create a fresh workspace directory.

    Args:
        temp_dir: Parent directory; the system temp directory when unset

    Returns:
        The new workspace
    """
    if temp_dir:
        base_dir = Path(temp_dir)
        base_dir.mkdir(parents=True, exist_ok=True)
        path = tempfile.mkdtemp(prefix='repo_migrate_', dir=base_dir)
    else:
        path = tempfile.mkdtemp(prefix='repo_migrate_')

    logger.debug(f'Created workspace: {path}')
    return Workspace(path=path)


def _make_writable_and_retry(func, path, _exc):
    # git marks pack files read-only
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _rmtree(path: str) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_make_writable_and_retry)
    else:
        shutil.rmtree(path, onerror=_make_writable_and_retry)


def remove_workspace(workspace: Workspace) -> Optional[MigrationError]:
    """Delete a workspace and everything in it.

    Returns:
        ``None`` on success, a ``CLEANUP`` error otherwise
    """
    try:
        if os.path.exists(workspace.path):
            _rmtree(workspace.path)
            logger.debug(f'Removed workspace: {workspace.path}')
        return None
    except OSError as e:
        logger.warning(f'Failed to remove workspace {workspace.path}: {e}')
        return MigrationError(
            ErrorKind.CLEANUP, f'Failed to remove workspace {workspace.path}: {e}', e
        )
