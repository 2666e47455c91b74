"""Mobile user schemas for admin CRUD, registration and login."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, model_validator

from backend.app.schemas.lead import CamelModel

MobileRole = Literal["admin", "manager", "sales_rep", "canvasser", "office_manager", "project_manager"]

# Roles that must be linked to a label in the remote CRM
ROLE_LABEL_FIELDS = {
    "sales_rep": "sales_rep",
    "canvasser": "canvasser",
    "office_manager": "office_manager",
    "project_manager": "project_manager",
}


class MobileUserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=1)
    role: MobileRole
    company_id: Optional[str] = None
    sales_rep: Optional[str] = None
    canvasser: Optional[str] = None
    office_manager: Optional[str] = None
    project_manager: Optional[str] = None


class MobileUserUpdate(CamelModel):
    id: str
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[MobileRole] = None
    is_active: Optional[bool] = None
    sales_rep: Optional[str] = None
    canvasser: Optional[str] = None
    office_manager: Optional[str] = None
    project_manager: Optional[str] = None


class MobileUserRegister(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    company_id: str = Field(min_length=1)
    role: Literal["sales_rep", "canvasser", "office_manager", "project_manager"] = "sales_rep"
    sales_rep: Optional[str] = None
    canvasser: Optional[str] = None
    office_manager: Optional[str] = None
    project_manager: Optional[str] = None

    @model_validator(mode="after")
    def require_role_label(self):
        field = ROLE_LABEL_FIELDS[self.role]
        if not getattr(self, field):
            raise ValueError(f"{field} is required for role {self.role}")
        return self

    @property
    def label(self) -> str:
        return getattr(self, ROLE_LABEL_FIELDS[self.role])


class MobileUserRead(CamelModel):
    id: str
    username: str
    email: str
    role: str
    sales_rep: Optional[str] = None
    canvasser: Optional[str] = None
    office_manager: Optional[str] = None
    project_manager: Optional[str] = None
    company_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MobileUserLogin(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
