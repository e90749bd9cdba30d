from datetime import datetime

from pydantic import BaseModel, Field

from app.models.enums import AppRole


class UserRead(BaseModel):
    id: int
    email: str
    name: str
    username: str | None = None
    role: str
    permissions: list[str] = []
    designation: str = ""
    phone_number: str = ""
    location: str = ""
    is_active: bool = True
    created_at: datetime | None = None


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    name: str = Field(min_length=1, max_length=120)
    username: str | None = None
    password: str = Field(min_length=8)
    role: AppRole = AppRole.EMPLOYEE
    designation: str = ""
    phone_number: str = ""
    location: str = ""


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    role: AppRole | None = None
    password: str | None = Field(default=None, min_length=8)
    designation: str | None = None
    phone_number: str | None = None
    location: str | None = None
    is_active: bool | None = None
