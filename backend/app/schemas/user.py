from typing import Literal

from pydantic import BaseModel, EmailStr

Role = Literal["citizen", "admin"]


class UserRegister(BaseModel):
    id: str
    email: EmailStr
    display_name: str | None = None


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    display_name: str | None = None


class RoleUpdate(BaseModel):
    role: Role


class RoleResponse(BaseModel):
    user_id: str
    role: Role


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str | None = None
    role: str
    created_at: str
    updated_at: str | None = None
