"""Task schemas. Task status is the remote CRM's own three-value vocabulary."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from backend.app.schemas.lead import CamelModel

TaskStatus = Literal["TODO", "IN_PROGRESS", "DONE"]


class TaskCreate(CamelModel):
    company_id: str
    lead_id: str
    title: str = Field(min_length=1)
    body: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_at: Optional[datetime] = None


class TaskUpdateFields(CamelModel):
    title: Optional[str] = None
    body: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_at: Optional[datetime] = None


class TaskUpdate(CamelModel):
    company_id: str
    updates: TaskUpdateFields


class TaskRead(CamelModel):
    id: str
    title: Optional[str] = None
    body: Optional[str] = None
    status: Optional[str] = None
    due_at: Optional[datetime] = None
    lead_id: Optional[str] = None
    lead_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
