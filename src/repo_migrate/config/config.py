"""Configuration management for the repository migration tool."""

from typing import Optional, Dict, Any, List
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
import yaml
from dotenv import load_dotenv

from ..models.task import DestinationCredentials, MigrationTask, SourceCredentials


class ConfigurationError(Exception):
    """Batch configuration is missing, empty or inconsistent.

    Raised before any task runs; the migration does not start.
    """

    pass


def _require_non_empty(value: str, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f'{field_name} must not be empty')
    return value


class SourceConfig(BaseModel):
    """Credentials for the source git server."""

    model_config = ConfigDict(extra='forbid')

    username: str = Field(..., description='Source username')
    password: str = Field(..., description='Source password or app password')

    @field_validator('username', 'password')
    @classmethod
    def validate_not_empty(cls, v, info):
        """Reject blank credentials."""
        return _require_non_empty(v, f'source.{info.field_name}')


class DestinationConfig(BaseModel):
    """Configuration for the destination GitLab instance."""

    model_config = ConfigDict(extra='forbid')

    url: str = Field(..., description='GitLab instance URL')
    token: str = Field(..., description='Personal access token')
    api_version: str = Field(default='v4', description='GitLab API version')
    timeout: int = Field(default=30, description='Request timeout in seconds')
    rate_limit_per_second: float = Field(
        default=10.0, description='API requests per second limit'
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate GitLab URL format."""
        _require_non_empty(v, 'destination.url')
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        """Reject a blank token."""
        return _require_non_empty(v, 'destination.token')

    @field_validator('rate_limit_per_second')
    @classmethod
    def validate_rate_limit(cls, v):
        """Validate rate limit is positive."""
        if v <= 0:
            raise ValueError('Rate limit must be positive')
        return v


class RepositoriesConfig(BaseModel):
    """The batch: parallel lists of source URLs and destination paths."""

    model_config = ConfigDict(extra='forbid')

    source_urls: List[str] = Field(..., description='Source repository URLs')
    destination_paths: List[str] = Field(
        ..., description='Destination paths (group/.../project)'
    )

    @field_validator('source_urls', 'destination_paths')
    @classmethod
    def validate_list(cls, v, info):
        """Strip entries, reject blank entries and empty lists.

        Entries pair up by position, so a blank one is an error rather than
        something to skip.
        """
        if not v:
            raise ValueError(f'repositories.{info.field_name} must not be empty')
        items = [item.strip() for item in v]
        for index, item in enumerate(items):
            if not item:
                raise ValueError(f'repositories.{info.field_name}[{index}] is blank')
        return items

    @model_validator(mode='after')
    def validate_lengths(self):
        """Both lists must pair up one to one."""
        if len(self.source_urls) != len(self.destination_paths):
            raise ValueError(
                'The number of source URLs and destination paths must be the same '
                f'({len(self.source_urls)} != {len(self.destination_paths)})'
            )
        return self


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    model_config = ConfigDict(extra='forbid')

    max_workers: int = Field(
        default=1, description='Maximum repositories migrated concurrently'
    )
    dry_run: bool = Field(default=False, description='Perform dry run without changes')
    group_description: str = Field(
        default='Description for {name}',
        description='Description template for created groups',
    )
    project_description: str = Field(
        default='Migrated project', description='Description for created projects'
    )

    @field_validator('max_workers')
    @classmethod
    def validate_max_workers(cls, v):
        """Validate max workers is positive."""
        if v <= 0:
            raise ValueError('Max workers must be positive')
        return v


class GitConfig(BaseModel):
    """Git operations configuration."""

    model_config = ConfigDict(extra='forbid')

    temp_dir: Optional[str] = Field(
        default=None,
        description='Custom temporary directory for git operations. If not specified, uses system temp directory.',
    )
    timeout: int = Field(
        default=3600, description='Git operation timeout in seconds (default: 1 hour)'
    )
    ssl_verify: bool = Field(
        default=True, description='Verify TLS certificates for git transports'
    )
    verify_refs: bool = Field(
        default=True,
        description='Compare local and remote branch/tag sets after pushing',
    )

    @field_validator('temp_dir')
    @classmethod
    def validate_temp_dir(cls, v):
        """Validate temp directory path."""
        if v is not None:
            temp_path = Path(v)
            if not temp_path.is_absolute():
                raise ValueError('temp_dir must be an absolute path')
        return v

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('Git timeout must be positive')
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra='forbid')

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for the repository migration tool."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    source: SourceConfig = Field(..., description='Source git server credentials')
    destination: DestinationConfig = Field(
        ..., description='Destination GitLab instance'
    )
    repositories: RepositoriesConfig = Field(
        ..., description='Repositories to migrate'
    )
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    git: GitConfig = Field(
        default_factory=GitConfig, description='Git operations settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Build configuration from a plain dictionary.

        Raises:
            ConfigurationError: If the data does not describe a valid batch
        """
        if not isinstance(data, dict):
            raise ConfigurationError('Configuration must be a mapping')
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f'Invalid configuration: {e}') from e

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise ConfigurationError(f'Configuration file not found: {config_path}')

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f'Cannot parse configuration file {config_path}: {e}'
            ) from e

        return cls.from_dict(config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        config_data = {
            'source': {
                'username': os.getenv('SOURCE_USERNAME'),
                'password': os.getenv('SOURCE_PASSWORD'),
            },
            'destination': {
                'url': os.getenv('DEST_GITLAB_URL'),
                'token': os.getenv('DEST_GITLAB_TOKEN'),
            },
            'repositories': {
                'source_urls': cls._split_list(os.getenv('SOURCE_URLS')),
                'destination_paths': cls._split_list(os.getenv('DEST_PATHS')),
            },
            'migration': {
                'max_workers': cls._int_env('MIGRATION_MAX_WORKERS', 1),
            },
            'git': {
                'temp_dir': os.getenv('GIT_TEMP_DIR'),
                'timeout': cls._int_env('GIT_TIMEOUT', 3600),
                'ssl_verify': os.getenv('GIT_SSL_VERIFY', 'true').lower() == 'true',
                'verify_refs': os.getenv('GIT_VERIFY_REFS', 'true').lower() == 'true',
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls.from_dict(config_data)

    @staticmethod
    def _split_list(value: Optional[str]) -> Optional[List[str]]:
        if value is None:
            return None
        items = [item.strip() for item in value.split(',')]
        # Tolerate a single trailing comma; inner blanks are left for validation.
        if len(items) > 1 and not items[-1]:
            items.pop()
        return items

    @staticmethod
    def _int_env(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f'{name} must be an integer, got {raw!r}')

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def tasks(self) -> List[MigrationTask]:
        """Pair up source URLs and destination paths into migration tasks."""
        source_credentials = SourceCredentials(
            username=self.source.username, password=self.source.password
        )
        destination_credentials = DestinationCredentials(
            url=self.destination.url, token=self.destination.token
        )
        return [
            MigrationTask(
                source_url=source_url,
                destination_path=destination_path,
                source_credentials=source_credentials,
                destination_credentials=destination_credentials,
            )
            for source_url, destination_path in zip(
                self.repositories.source_urls, self.repositories.destination_paths
            )
        ]

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )


def create_template(output_path: str) -> None:
    """Create a configuration template file."""
    template_config = {
        'source': {
            'username': 'your-source-username',
            'password': 'your-source-app-password',
        },
        'destination': {
            'url': 'https://gitlab.example.com',
            'token': 'your-destination-personal-access-token',
            'api_version': 'v4',
            'timeout': 30,
            'rate_limit_per_second': 10,
        },
        'repositories': {
            'source_urls': [
                'https://bitbucket.example.com/scm/team/repo1.git',
            ],
            'destination_paths': [
                'team-a/team-b/repo1',
            ],
        },
        'migration': {
            'max_workers': 1,
            'dry_run': False,
        },
        'git': {
            'temp_dir': None,
            'timeout': 3600,
            'ssl_verify': True,
            'verify_refs': True,
        },
        'logging': {
            'level': 'INFO',
            'file': 'migration.log',
        },
    }

    config_file = Path(output_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(
            template_config, f, default_flow_style=False, indent=2, sort_keys=False
        )
