"""Configuration loading for the repository migration tool."""

from .config import (
    Config,
    ConfigurationError,
    DestinationConfig,
    GitConfig,
    LoggingConfig,
    MigrationConfig,
    RepositoriesConfig,
    SourceConfig,
    create_template,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'DestinationConfig',
    'GitConfig',
    'LoggingConfig',
    'MigrationConfig',
    'RepositoriesConfig',
    'SourceConfig',
    'create_template',
]
