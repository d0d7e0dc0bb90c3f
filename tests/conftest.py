"""Shared fixtures and builders."""

import asyncio
import os

import pytest

from repo_migrate.api.exceptions import GitLabNotFoundError, GitLabValidationError
from repo_migrate.config.config import GitConfig
from repo_migrate.errors import ErrorKind, MigrationError
from repo_migrate.git.clone import CloneResult
from repo_migrate.git.operations import RepositoryTransporter
from repo_migrate.git.push import PushResult
from repo_migrate.models.group import Namespace
from repo_migrate.models.project import Project
from repo_migrate.models.task import (
    DestinationCredentials,
    MigrationTask,
    SourceCredentials,
)


def make_task(
    destination_path: str = 'teamA/teamB/repo1',
    source_url: str = 'https://src.example.com/org/repo1.git',
) -> MigrationTask:
    return MigrationTask(
        source_url=source_url,
        destination_path=destination_path,
        source_credentials=SourceCredentials(username='user', password='s3cret'),
        destination_credentials=DestinationCredentials(
            url='https://gitlab.example.com', token='glpat-token'
        ),
    )


def make_group(id: int, full_path: str, parent_id=None) -> Namespace:
    name = full_path.rsplit('/', 1)[-1]
    return Namespace(
        id=id, name=name, path=name, full_path=full_path, parent_id=parent_id
    )


def make_project(id: int, full_path: str, namespace_id: int = 1) -> Project:
    name = full_path.rsplit('/', 1)[-1]
    return Project(
        id=id,
        name=name,
        path=name,
        path_with_namespace=full_path,
        http_url_to_repo=f'https://gitlab.example.com/{full_path}.git',
        namespace={'id': namespace_id},
    )


@pytest.fixture
def task():
    return make_task()


class FakeGitLab:
    """In-memory stand-in for the groups and projects endpoints."""

    def __init__(self, groups=(), projects=()):
        self.groups = {group.full_path: group for group in groups}
        self.projects = {project.path_with_namespace: project for project in projects}
        self.created_groups = []
        self.created_projects = []
        self.next_id = 100

    def _taken(self):
        return GitLabValidationError(
            'Request rejected',
            status_code=400,
            response_data={'message': {'path': ['has already been taken']}},
        )

    def _full_path(self, parent_id, path):
        if parent_id is None:
            return path
        parent = next(g for g in self.groups.values() if g.id == parent_id)
        return f'{parent.full_path}/{path}'

    async def get_group(self, full_path):
        if full_path not in self.groups:
            raise GitLabNotFoundError('Resource not found', status_code=404)
        return self.groups[full_path]

    async def create_group(self, payload):
        full_path = self._full_path(payload.parent_id, payload.path)
        if full_path in self.groups:
            raise self._taken()
        self.next_id += 1
        group = make_group(self.next_id, full_path, payload.parent_id)
        self.groups[full_path] = group
        self.created_groups.append(payload)
        return group

    async def get_project(self, full_path):
        if full_path not in self.projects:
            raise GitLabNotFoundError('Resource not found', status_code=404)
        return self.projects[full_path]

    async def create_project(self, payload):
        full_path = self._full_path(payload.namespace_id, payload.path)
        if full_path in self.projects:
            raise self._taken()
        self.next_id += 1
        project = make_project(self.next_id, full_path, payload.namespace_id)
        self.projects[full_path] = project
        self.created_projects.append(payload)
        return project


class ScriptedTransporter(RepositoryTransporter):
    """Real workspaces, scripted clone and push outcomes."""

    def __init__(self, temp_dir, clone_failures=(), push_failures=(), push_crashes=()):
        super().__init__(GitConfig(temp_dir=temp_dir))
        self.clone_failures = set(clone_failures)
        self.push_failures = set(push_failures)
        self.push_crashes = set(push_crashes)
        self.workspaces = []
        self.cloned = []
        self.pushed = []
        self.delay = 0
        self.in_flight = {}
        self.max_in_flight = {}
        self.max_in_flight_total = 0

    async def clone_mirror(self, source_url, credentials, workspace=None):
        self.workspaces.append(workspace)
        self.cloned.append(source_url)
        if source_url in self.clone_failures:
            return CloneResult(
                workspace=workspace,
                error=MigrationError(ErrorKind.CLONE, 'Authentication failed'),
            )
        os.makedirs(workspace.repository_path)
        return CloneResult(workspace=workspace)

    async def push_mirror(self, workspace, destination_url, token):
        self.in_flight[destination_url] = self.in_flight.get(destination_url, 0) + 1
        self.max_in_flight[destination_url] = max(
            self.max_in_flight.get(destination_url, 0), self.in_flight[destination_url]
        )
        self.max_in_flight_total = max(
            self.max_in_flight_total, sum(self.in_flight.values())
        )
        try:
            await asyncio.sleep(self.delay)
            self.pushed.append(destination_url)
            if destination_url in self.push_crashes:
                raise RuntimeError('connection reset by peer')
            if destination_url in self.push_failures:
                return PushResult(error=MigrationError(ErrorKind.PUSH, 'rejected'))
            return PushResult(branches_pushed=2, tags_pushed=1)
        finally:
            self.in_flight[destination_url] -= 1
