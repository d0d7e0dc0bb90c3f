"""Tests for CLI interface."""

import os
import sys
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from click.testing import CliRunner
from loguru import logger

from conftest import make_task
from repo_migrate.cli.main import cli
from repo_migrate.errors import ErrorKind, MigrationError
from repo_migrate.migration.orchestrator import (
    MigrationSummary,
    TaskResult,
    TaskStatus,
    TaskStep,
)


CONFIG = {
    'source': {'username': 'bitbucket-user', 'password': 'app-password'},
    'destination': {'url': 'https://gitlab.example.com', 'token': 'glpat-token'},
    'repositories': {
        'source_urls': [
            'https://src.example.com/org/repo1.git',
            'https://src.example.com/org/repo2.git',
        ],
        'destination_paths': ['teamA/repo1', 'teamA/repo2'],
    },
}


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI replaces loguru sinks with ones bound to the runner's streams."""
    yield
    logger.remove()
    logger.add(sys.stderr)


def _summary(*statuses):
    results = []
    for index, status in enumerate(statuses):
        result = TaskResult(task=make_task(f'teamA/repo{index}'), status=status)
        if status == TaskStatus.FAILED:
            result.fail(TaskStep.CLONE, MigrationError(ErrorKind.CLONE, 'Authentication failed'))
        results.append(result)
    return MigrationSummary(
        started_at=datetime.now(), completed_at=datetime.now(), results=results
    )


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def _write_config(self, directory, data=None):
        path = os.path.join(directory, 'config.yaml')
        with open(path, 'w') as f:
            yaml.safe_dump(data or CONFIG, f)
        return path

    def test_cli_help(self):
        """Test CLI help command."""
        result = self.runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Repository Migration Tool' in result.output
        for command in ('init', 'migrate', 'validate', 'status'):
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version command."""
        result = self.runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_init_command(self, tmp_path):
        """Test init command."""
        config_path = str(tmp_path / 'test_config.yaml')

        result = self.runner.invoke(cli, ['init', '--output', config_path])

        assert result.exit_code == 0
        assert 'Configuration template created' in result.output
        with open(config_path) as f:
            content = f.read()
        assert 'repositories:' in content
        assert 'destination_paths:' in content

    def test_init_command_default_output(self):
        """Test init command with default output."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init'])

            assert result.exit_code == 0
            assert os.path.exists('config.yaml')

    def test_migrate_command_success(self, tmp_path):
        """Test successful migrate command."""
        config_path = self._write_config(str(tmp_path))
        summary = _summary(TaskStatus.COMPLETED, TaskStatus.COMPLETED)

        with patch(
            'repo_migrate.cli.main._run_migration', AsyncMock(return_value=summary)
        ) as run:
            result = self.runner.invoke(cli, ['-c', config_path, 'migrate'])

        assert result.exit_code == 0
        assert 'Starting migration process' in result.output
        assert 'Successful: 2' in result.output
        assert 'Migration completed successfully' in result.output
        config, dry_run = run.call_args.args
        assert config.repositories.destination_paths == ['teamA/repo1', 'teamA/repo2']
        assert dry_run is False

    def test_migrate_command_partial_failure(self, tmp_path):
        """Test that a failed task makes the command exit with code 1."""
        config_path = self._write_config(str(tmp_path))
        summary = _summary(TaskStatus.FAILED, TaskStatus.COMPLETED)

        with patch('repo_migrate.cli.main._run_migration', AsyncMock(return_value=summary)):
            result = self.runner.invoke(cli, ['-c', config_path, 'migrate'])

        assert result.exit_code == 1
        assert 'Failed: 1' in result.output
        assert '1 of 2 repositories failed' in result.output

    def test_migrate_command_dry_run(self, tmp_path):
        """Test migrate command with dry run."""
        config_path = self._write_config(str(tmp_path))
        summary = _summary(TaskStatus.SKIPPED, TaskStatus.SKIPPED)

        with patch(
            'repo_migrate.cli.main._run_migration', AsyncMock(return_value=summary)
        ) as run:
            result = self.runner.invoke(cli, ['-c', config_path, 'migrate', '--dry-run'])

        assert result.exit_code == 0
        assert 'dry-run mode' in result.output
        assert run.call_args.args[1] is True

    def test_migrate_command_configuration_error(self, tmp_path):
        """Test that mismatched repository lists stop the run before it starts."""
        data = dict(CONFIG)
        data['repositories'] = {
            'source_urls': ['https://src.example.com/org/repo1.git'],
            'destination_paths': ['teamA/repo1', 'teamA/repo2'],
        }
        config_path = self._write_config(str(tmp_path), data)

        with patch('repo_migrate.cli.main._run_migration') as run:
            result = self.runner.invoke(cli, ['-c', config_path, 'migrate'])

        assert result.exit_code == 2
        assert 'Configuration error' in result.output
        run.assert_not_called()

    def test_migrate_command_unreachable(self, tmp_path):
        config_path = self._write_config(str(tmp_path))

        with patch(
            'repo_migrate.cli.main._run_migration',
            AsyncMock(side_effect=ConnectionError('Cannot connect to destination GitLab instance')),
        ):
            result = self.runner.invoke(cli, ['-c', config_path, 'migrate'])

        assert result.exit_code == 1
        assert 'Migration failed' in result.output

    def test_default_config_file(self):
        """Test that config.yaml in the working directory is picked up."""
        summary = _summary(TaskStatus.COMPLETED)

        with self.runner.isolated_filesystem():
            self._write_config('.')
            with patch(
                'repo_migrate.cli.main._run_migration', AsyncMock(return_value=summary)
            ) as run:
                result = self.runner.invoke(cli, ['migrate'])

        assert result.exit_code == 0
        assert run.call_args.args[0].source.username == 'bitbucket-user'

    def test_validate_command_success(self, tmp_path):
        """Test successful validate command."""
        config_path = self._write_config(str(tmp_path))

        with patch(
            'repo_migrate.cli.main.MigrationEngine._test_connectivity', AsyncMock()
        ):
            result = self.runner.invoke(cli, ['-c', config_path, 'validate'])

        assert result.exit_code == 0
        assert 'Connectivity validation passed' in result.output
        assert 'Configuration validation completed' in result.output

    def test_validate_command_invalid_path(self, tmp_path):
        data = dict(CONFIG)
        data['repositories'] = {
            'source_urls': ['https://src.example.com/org/repo1.git'],
            'destination_paths': ['team_a/repo1'],
        }
        config_path = self._write_config(str(tmp_path), data)

        with patch(
            'repo_migrate.cli.main.MigrationEngine._test_connectivity', AsyncMock()
        ):
            result = self.runner.invoke(cli, ['-c', config_path, 'validate'])

        assert result.exit_code == 1
        assert 'team_a/repo1' in result.output

    def test_validate_command_connectivity_failure(self, tmp_path):
        config_path = self._write_config(str(tmp_path))

        with patch(
            'repo_migrate.cli.main.MigrationEngine._test_connectivity',
            AsyncMock(side_effect=ConnectionError('Cannot connect')),
        ):
            result = self.runner.invoke(cli, ['-c', config_path, 'validate'])

        assert result.exit_code == 1
        assert 'Cannot connect' in result.output

    def test_status_command(self, tmp_path):
        """Test status command."""
        config_path = self._write_config(str(tmp_path))

        result = self.runner.invoke(cli, ['-c', config_path, 'status'])

        assert result.exit_code == 0
        assert 'Migration Configuration' in result.output
        assert 'bitbucket-user' in result.output
        assert 'app-password' not in result.output
        assert 'glpat-token' not in result.output

    def test_missing_config_file(self):
        result = self.runner.invoke(cli, ['-c', '/nonexistent/config.yaml', 'status'])

        assert result.exit_code == 2
