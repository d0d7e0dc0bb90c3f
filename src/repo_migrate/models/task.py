"""Migration task models."""

from pydantic import BaseModel, ConfigDict, Field


class SourceCredentials(BaseModel):
    """Username/secret pair for the source git server."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description='Source username')
    password: str = Field(..., description='Source password or app password')

    def __repr__(self) -> str:
        return f'SourceCredentials(username={self.username!r}, password=***)'


class DestinationCredentials(BaseModel):
    """Base URL and token for the destination GitLab instance."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description='GitLab instance URL')
    token: str = Field(..., description='Personal access token')

    def __repr__(self) -> str:
        return f'DestinationCredentials(url={self.url!r}, token=***)'


class MigrationTask(BaseModel):
    """One repository to move: where it comes from and where it goes."""

    model_config = ConfigDict(frozen=True)

    source_url: str = Field(..., description='Source repository URL')
    destination_path: str = Field(
        ..., description='Destination path, e.g. group/subgroup/project'
    )
    source_credentials: SourceCredentials = Field(
        ..., description='Credentials for cloning the source'
    )
    destination_credentials: DestinationCredentials = Field(
        ..., description='Credentials for the destination instance'
    )

    def __str__(self) -> str:
        return f'{self.source_url} -> {self.destination_path}'
