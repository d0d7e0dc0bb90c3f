"""Group (namespace) entity models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Namespace(BaseModel):
    """GitLab group as returned by the groups API."""

    model_config = ConfigDict(extra='ignore')

    id: int = Field(..., description='Group ID')
    name: str = Field(..., description='Group name')
    path: str = Field(..., description='Group path')
    full_path: str = Field(..., description='Full group path with parents')
    parent_id: Optional[int] = Field(default=None, description='Parent group ID')
    visibility: Optional[str] = Field(default=None, description='Group visibility')
    web_url: Optional[str] = Field(default=None, description='Web URL')


class GroupCreate(BaseModel):
    """Payload for creating a new group."""

    name: str = Field(..., description='Group name')
    path: str = Field(..., description='Group path')
    description: Optional[str] = Field(default=None, description='Group description')
    visibility: str = Field(default='private', description='Group visibility')
    parent_id: Optional[int] = Field(default=None, description='Parent group ID')
