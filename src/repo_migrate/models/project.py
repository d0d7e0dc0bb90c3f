"""Project entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Project(BaseModel):
    """GitLab project as returned by the projects API."""

    model_config = ConfigDict(extra='ignore')

    id: int = Field(..., description='Project ID')
    name: str = Field(..., description='Project name')
    path: str = Field(..., description='Project path')
    path_with_namespace: Optional[str] = Field(
        default=None, description='Full project path'
    )
    http_url_to_repo: str = Field(..., description='HTTP clone URL')
    ssh_url_to_repo: Optional[str] = Field(default=None, description='SSH clone URL')
    web_url: Optional[str] = Field(default=None, description='Web URL')
    namespace: Optional[Dict[str, Any]] = Field(
        default=None, description='Project namespace'
    )

    @property
    def namespace_id(self) -> Optional[int]:
        """ID of the group holding the project."""
        if self.namespace:
            return self.namespace.get('id')
        return None


class ProjectCreate(BaseModel):
    """Payload for creating a new project."""

    name: str = Field(..., description='Project name')
    path: str = Field(..., description='Project path')
    namespace_id: int = Field(..., description='Namespace ID')
    description: Optional[str] = Field(default=None, description='Project description')
