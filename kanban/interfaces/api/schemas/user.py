"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    full_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    avatar: str | None = Field(default=None, max_length=255)


class UserRead(BaseModel):
    id: int
    username: str
    full_name: str
    email: EmailStr
    avatar: str | None
    is_active: bool
    last_login: datetime | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
