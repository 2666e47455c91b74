"""Lead schemas shared by the remote client, offline store, lead store and API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


LeadSource = Literal["google_ads", "google_lsa", "facebook_ads", "canvass", "referral", "website", "twenty_crm"]
LeadMedium = Literal["cpc", "lsas", "social_ads", "canvass", "referral", "organic"]
LeadStatus = Literal["new", "contacted", "qualified", "quoted", "proposal_sent", "won", "lost"]
PropertyType = Literal["residential", "commercial"]
SyncStatus = Literal["synced", "pending", "error"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Lead(CamelModel):
    """Internal lead shape.

    ``status`` is the local pipeline vocabulary. ``stage`` is the remote CRM's
    free-text stage and is never overwritten by ``status`` (or vice versa).
    """

    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    source: str = "website"
    medium: Optional[str] = "organic"
    status: str = "new"
    stage: Optional[str] = None
    notes: Optional[str] = None
    estimated_value: Optional[float] = Field(default=None, ge=0)
    roof_type: Optional[str] = None
    property_type: Optional[str] = None
    assigned_to: Optional[str] = None
    sales_rep: Optional[str] = None
    company_id: Optional[str] = None
    next_follow_up: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sync_status: Optional[SyncStatus] = None
    last_synced_at: Optional[datetime] = None


class LeadFilters(CamelModel):
    status: list[str] = Field(default_factory=list)
    source: list[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    property_type: Optional[PropertyType] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    sync_status: list[SyncStatus] = Field(default_factory=list)


class LeadCreate(CamelModel):
    """Schema for lead creation requests against the relational store."""

    company_id: str
    name: str = Field(min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=2)
    zip_code: Optional[str] = Field(default=None, max_length=10)
    status: LeadStatus = "new"
    source: LeadSource = "website"
    notes: Optional[str] = Field(default=None, max_length=5000)
    assigned_to: Optional[str] = None


class LeadUpdate(CamelModel):
    """Schema for lead updates with partial fields."""

    id: str
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=300)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=2)
    zip_code: Optional[str] = Field(default=None, max_length=10)
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    assigned_to: Optional[str] = None


class LeadRead(CamelModel):
    """Schema for relational lead responses."""

    id: str
    company_id: str
    twenty_id: Optional[str] = None
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    status: str
    source: str
    medium: str = "organic"
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OfflineLeadUpdate(CamelModel):
    """Local edit to an offline lead; the lead is queued for the next push."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    source: Optional[LeadSource] = None
    medium: Optional[LeadMedium] = None
    status: Optional[LeadStatus] = None
    stage: Optional[str] = None
    notes: Optional[str] = None
    estimated_value: Optional[float] = Field(default=None, ge=0)
    roof_type: Optional[str] = None
    property_type: Optional[PropertyType] = None
    assigned_to: Optional[str] = None
    sales_rep: Optional[str] = None
    next_follow_up: Optional[datetime] = None
