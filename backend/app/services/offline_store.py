"""Local offline lead cache.

Each public method opens its own session and commits once, so every
write is its own transaction.
"""

import logging
import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import func

from backend.app.core.time import as_utc, utc_now
from backend.app.db.offline_session import OfflineSessionLocal
from backend.app.models.offline_lead import OfflineLead
from backend.app.schemas.lead import Lead
from backend.app.schemas.sync import SyncStats

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("next_follow_up", "created_at", "updated_at", "last_synced_at")
_COLUMNS = {column.name for column in OfflineLead.__table__.columns}


def _to_lead(row: OfflineLead) -> Lead:
    lead = Lead.model_validate(row)
    return lead.model_copy(update={field: as_utc(getattr(lead, field)) for field in _DATETIME_FIELDS})


def _row_values(values: dict[str, Any]) -> dict[str, Any]:
    row = {key: value for key, value in values.items() if key in _COLUMNS}
    if "name" in row and row["name"] is not None:
        row["name_key"] = row["name"].lower()
    return row


class OfflineLeadStore:
    def __init__(self, session_factory=OfflineSessionLocal):
        self.session_factory = session_factory

    def get(self, lead_id: str) -> Optional[Lead]:
        with self.session_factory() as db:
            row = db.get(OfflineLead, lead_id)
            return _to_lead(row) if row else None

    def put(self, lead: Lead) -> Lead:
        """Insert or fully replace a lead. A missing sync status becomes ``pending``."""
        if lead.sync_status is None:
            lead = lead.model_copy(update={"sync_status": "pending"})
        with self.session_factory() as db:
            db.merge(OfflineLead(**_row_values(lead.model_dump())))
            db.commit()
        return lead

    def update(self, lead_id: str, changes: dict[str, Any]) -> bool:
        """Apply a partial update; returns False when the lead is not stored."""
        with self.session_factory() as db:
            row = db.get(OfflineLead, lead_id)
            if row is None:
                return False
            for key, value in _row_values(changes).items():
                setattr(row, key, value)
            db.commit()
        return True

    def delete(self, lead_id: str) -> bool:
        with self.session_factory() as db:
            row = db.get(OfflineLead, lead_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
        return True

    def where_sync_status(self, statuses: Iterable[str], company_id: Optional[str] = None) -> list[Lead]:
        with self.session_factory() as db:
            query = db.query(OfflineLead).filter(OfflineLead.sync_status.in_(list(statuses)))
            if company_id:
                query = query.filter(OfflineLead.company_id == company_id)
            return [_to_lead(row) for row in query.all()]

    def all(self, company_id: Optional[str] = None) -> list[Lead]:
        with self.session_factory() as db:
            query = db.query(OfflineLead)
            if company_id:
                query = query.filter(OfflineLead.company_id == company_id)
            return [_to_lead(row) for row in query.all()]

    def count(self, company_id: Optional[str] = None) -> int:
        with self.session_factory() as db:
            query = db.query(func.count(OfflineLead.id))
            if company_id:
                query = query.filter(OfflineLead.company_id == company_id)
            return query.scalar() or 0

    def find_by_name(self, name: str) -> list[Lead]:
        """Case-insensitive exact lookup on the lead name."""
        with self.session_factory() as db:
            rows = db.query(OfflineLead).filter(OfflineLead.name_key == name.lower()).all()
            return [_to_lead(row) for row in rows]

    def create(self, fields: dict[str, Any]) -> Lead:
        """Store a new local lead under a fresh UUID, pending its first push."""
        now = utc_now()
        data = dict(fields)
        data.update(
            {
                "id": str(uuid.uuid4()),
                "created_at": now,
                "updated_at": now,
                "sync_status": "pending",
                "last_synced_at": None,
            }
        )
        lead = self.put(Lead.model_validate(data))
        logger.info("Created offline lead %s", lead.id)
        return lead

    def mark_for_sync(self, lead_id: str) -> bool:
        return self.update(lead_id, {"sync_status": "pending", "updated_at": utc_now()})

    def stats(self, company_id: Optional[str] = None) -> SyncStats:
        with self.session_factory() as db:
            query = db.query(OfflineLead.sync_status, func.count(OfflineLead.id))
            if company_id:
                query = query.filter(OfflineLead.company_id == company_id)
            counts = dict(query.group_by(OfflineLead.sync_status).all())
        return SyncStats(
            total=sum(counts.values()),
            synced=counts.get("synced", 0),
            pending=counts.get("pending", 0),
            error=counts.get("error", 0),
        )
