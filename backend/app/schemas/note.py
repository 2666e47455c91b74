"""Note schemas for remote CRM notes attached to a lead."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from backend.app.schemas.lead import CamelModel


class NoteCreate(CamelModel):
    lead_id: str
    company_id: str
    title: Optional[str] = None
    note_body: str = Field(min_length=1)


class NoteRead(CamelModel):
    id: str
    title: str = ""
    body: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
