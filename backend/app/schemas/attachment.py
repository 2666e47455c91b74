"""Attachment (file) schemas for remote CRM lead files."""

from datetime import datetime
from typing import Optional

from backend.app.schemas.lead import CamelModel


class AttachmentRead(CamelModel):
    id: str
    name: Optional[str] = None
    full_path: Optional[str] = None
    type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
