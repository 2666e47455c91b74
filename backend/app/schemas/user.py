"""Legacy web user schemas used for admin CRUD and login."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from backend.app.schemas.lead import CamelModel

UserRole = Literal["owner", "manager", "salesperson"]


class UserCreate(CamelModel):
    company_id: str
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole
    is_active: bool = True


class UserUpdate(CamelModel):
    id: str
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserRead(CamelModel):
    id: str
    company_id: str
    company_name: Optional[str] = None
    name: str
    email: EmailStr
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserLogin(CamelModel):
    email: EmailStr
    password: str
