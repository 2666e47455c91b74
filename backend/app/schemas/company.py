"""Company schemas. API keys are plaintext here; encryption happens in the route."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from backend.app.schemas.lead import CamelModel


class CompanyCreate(CamelModel):
    name: str = Field(min_length=1)
    logo: Optional[str] = None
    contact_email: EmailStr
    contact_phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    zip_code: str = Field(min_length=5)
    twenty_api_url: str = Field(min_length=1)
    twenty_api_key: str = Field(min_length=1)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    is_active: bool = True


class CompanyUpdate(CamelModel):
    id: str
    name: Optional[str] = Field(default=None, min_length=1)
    logo: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(default=None, min_length=2, max_length=2)
    zip_code: Optional[str] = None
    twenty_api_url: Optional[str] = None
    twenty_api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyRead(CamelModel):
    id: str
    name: str
    logo: Optional[str] = None
    contact_email: str
    contact_phone: str
    address: str
    city: str
    state: str
    zip_code: str
    twenty_api_url: str
    twenty_api_key: str
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
