"""Schemas for the project membership endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class ProjectCreated(BaseModel):
    id: int
    name: str


class ProjectMemberAdd(BaseModel):
    user_id: int = Field(..., ge=1)
    role: str = Field(default="member", pattern=r"^(admin|member|viewer)$")


class ProjectMemberRead(BaseModel):
    project_id: int
    user_id: int
    role: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


__all__ = ["ProjectCreate", "ProjectCreated", "ProjectMemberAdd", "ProjectMemberRead"]
