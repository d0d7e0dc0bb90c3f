"""Git repository pushing operations."""

from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger

from ..config.config import GitConfig
from ..errors import ErrorKind, MigrationError
from .command import authenticated_url, mask_credentials, run_git_command
from .workspace import Workspace


REMOTE_NAME = 'destination'

# GitLab accepts any username alongside a token; the token is the secret.
TOKEN_USERNAME = 'oauth2'


@dataclass
class PushResult:
    """Result of a forced push of branches and tags."""

    error: Optional[MigrationError] = None
    branches_pushed: int = 0
    tags_pushed: int = 0

    @property
    def success(self) -> bool:
        return self.error is None


def parse_ref_listing(output: str) -> Dict[str, str]:
    """Parse ``<sha> <ref>`` lines into a ref -> sha mapping.

    Peeled tag entries (``refs/tags/v1^{}``) are dropped.
    """
    refs = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != 2:
            continue
        sha, ref = parts
        if ref.endswith('^{}'):
            continue
        refs[ref] = sha
    return refs


class GitPusher:
    """Pushes mirror clones to their destination."""

    def __init__(self, config: GitConfig):
        """Initialize git pusher.

        Args:
            config: Git configuration
        """
        self.config = config
        self.logger = logger.bind(component='GitPusher')

    async def _git(self, repo_path: str, *args: str):
        return await run_git_command(
            list(args),
            cwd=repo_path,
            timeout=self.config.timeout,
            ssl_verify=self.config.ssl_verify,
        )

    def _failure(self, message: str) -> PushResult:
        self.logger.error(message)
        return PushResult(error=MigrationError(ErrorKind.PUSH, message))

    async def push_mirror(
        self, workspace: Workspace, destination_url: str, token: str
    ) -> PushResult:
        """Force-push all branches and tags of the workspace repository.

        Args:
            workspace: Workspace holding a mirror clone
            destination_url: HTTP(S) URL of the destination repository
            token: Destination access token

        Returns:
            Push result
        """
        repo_path = workspace.repository_path
        push_url = authenticated_url(destination_url, TOKEN_USERNAME, token)
        masked_url = mask_credentials(destination_url)

        added = await self._git(repo_path, 'remote', 'add', REMOTE_NAME, push_url)
        if not added.success:
            return self._failure(
                f'Failed to add remote {masked_url}: {added.describe()}'
            )

        self.logger.info(f'Pushing all branches to {masked_url}')
        branches = await self._git(repo_path, 'push', '--force', '--all', REMOTE_NAME)
        if not branches.success:
            return self._failure(
                f'Failed to push branches to {masked_url}: {branches.describe()}'
            )

        self.logger.info(f'Pushing all tags to {masked_url}')
        tags = await self._git(repo_path, 'push', '--force', '--tags', REMOTE_NAME)
        if not tags.success:
            return self._failure(
                f'Failed to push tags to {masked_url}: {tags.describe()}'
            )

        local_refs = await self.local_refs(repo_path)
        if local_refs is None:
            return self._failure(f'Failed to list local refs in {repo_path}')

        if self.config.verify_refs:
            mismatch = await self._verify_remote_refs(repo_path, local_refs)
            if mismatch:
                return self._failure(
                    f'Destination {masked_url} refs differ after push: {mismatch}'
                )

        result = PushResult(
            branches_pushed=sum(1 for ref in local_refs if ref.startswith('refs/heads/')),
            tags_pushed=sum(1 for ref in local_refs if ref.startswith('refs/tags/')),
        )
        self.logger.info(
            f'Repository pushed to {masked_url}: '
            f'{result.branches_pushed} branches, {result.tags_pushed} tags'
        )
        return result

    async def local_refs(self, repo_path: str) -> Optional[Dict[str, str]]:
        """Branches and tags of the local repository, ref -> object id."""
        listing = await self._git(
            repo_path,
            'for-each-ref',
            '--format=%(objectname) %(refname)',
            'refs/heads',
            'refs/tags',
        )
        if not listing.success:
            return None
        return parse_ref_listing(listing.stdout)

    async def _verify_remote_refs(
        self, repo_path: str, local_refs: Dict[str, str]
    ) -> Optional[str]:
        """Compare local branches/tags with the destination's.

        Returns:
            A description of the difference, or ``None`` when they match
        """
        listing = await self._git(repo_path, 'ls-remote', '--heads', '--tags', REMOTE_NAME)
        if not listing.success:
            return f'cannot list remote refs ({listing.describe()})'

        remote_refs = parse_ref_listing(listing.stdout)
        missing = sorted(ref for ref in local_refs if ref not in remote_refs)
        extra = sorted(ref for ref in remote_refs if ref not in local_refs)
        diverged = sorted(
            ref
            for ref, sha in local_refs.items()
            if ref in remote_refs and remote_refs[ref] != sha
        )

        if extra:
            # forced pushes never delete destination refs
            self.logger.warning(
                f'Destination keeps refs that are not in the source: {extra}'
            )

        problems = []
        if missing:
            problems.append(f'missing {missing}')
        if diverged:
            problems.append(f'diverged {diverged}')
        return '; '.join(problems) or None
