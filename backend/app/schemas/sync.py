"""Results reported by sync passes."""

from pydantic import BaseModel, Field

from backend.app.schemas.lead import CamelModel


class SyncError(CamelModel):
    lead_id: str
    error: str


class SyncResult(BaseModel):
    success: bool = True
    synced: int = 0
    failed: int = 0
    errors: list[SyncError] = Field(default_factory=list)


class SyncStats(BaseModel):
    total: int = 0
    synced: int = 0
    pending: int = 0
    error: int = 0
