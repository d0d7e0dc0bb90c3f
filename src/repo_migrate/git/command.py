"""Running git as an async subprocess."""

import asyncio
import os
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from loguru import logger

from ..utils.logging import mask_credentials


def authenticated_url(url: str, username: str, secret: str) -> str:
    """Embed credentials into an http(s) URL.

    Existing userinfo is replaced. Other schemes (ssh, file, local paths)
    are returned unchanged.
    """
    parts = urlsplit(url)
    if parts.scheme not in ('http', 'https'):
        return url

    host = parts.hostname or ''
    if ':' in host:
        host = f'[{host}]'
    if parts.port:
        host = f'{host}:{parts.port}'

    userinfo = f'{quote(username, safe="")}:{quote(secret, safe="")}'
    return urlunsplit(
        (parts.scheme, f'{userinfo}@{host}', parts.path, parts.query, parts.fragment)
    )


@dataclass
class GitCommandResult:
    """Outcome of one git invocation."""

    returncode: int
    stdout: str = ''
    stderr: str = ''
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def describe(self) -> str:
        """Short, credential-free explanation of a failure."""
        if self.timed_out:
            return 'timed out'
        output = mask_credentials(self.stderr.strip() or self.stdout.strip())
        return output or f'exit code {self.returncode}'


async def run_git_command(
    args: List[str],
    cwd: str,
    timeout: Optional[float] = None,
    ssl_verify: bool = True,
) -> GitCommandResult:
    """Run ``git <args>`` in ``cwd`` and capture its output.

    Never prompts for credentials. A command that exceeds ``timeout`` is
    killed and reported with ``timed_out=True``.
    """
    cmd = ['git']
    if not ssl_verify:
        cmd += ['-c', 'http.sslVerify=false']
    cmd += args

    env = dict(os.environ)
    env['GIT_TERMINAL_PROMPT'] = '0'

    logger.debug(f'Running git command: {mask_credentials(" ".join(cmd))} in {cwd}')

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )
    except OSError as e:
        logger.error(f'Git command could not be started: {e}')
        return GitCommandResult(returncode=-1, stderr=str(e))

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.error(
            f'Git command timed out after {timeout} seconds: '
            f'{mask_credentials(" ".join(cmd))}'
        )
        return GitCommandResult(returncode=-1, timed_out=True)

    result = GitCommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors='replace') if stdout else '',
        stderr=stderr.decode(errors='replace') if stderr else '',
    )

    logger.debug(f'Git command return code: {result.returncode}')
    if result.stderr and not result.success:
        logger.debug(f'Git command stderr: {mask_credentials(result.stderr)}')

    return result
