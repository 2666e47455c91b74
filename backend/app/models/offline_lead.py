"""Offline lead cache table.

``name`` keeps the display casing; ``name_key`` is its lowercased copy and
is the indexed column used for lookups.
"""

from sqlalchemy import Column, DateTime, Float, String, Text

from backend.app.db.base_class import OfflineBase


class OfflineLead(OfflineBase):
    __tablename__ = "offline_leads"

    id = Column(String(64), primary_key=True)
    company_id = Column(String(36), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    name_key = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(String(300), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip_code = Column(String(10), nullable=True)
    source = Column(String(30), nullable=False, default="website", index=True)
    medium = Column(String(30), nullable=True)
    status = Column(String(30), nullable=False, default="new", index=True)
    stage = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    estimated_value = Column(Float, nullable=True)
    roof_type = Column(String(100), nullable=True)
    property_type = Column(String(20), nullable=True)
    assigned_to = Column(String(100), nullable=True)
    sales_rep = Column(String(100), nullable=True)
    next_follow_up = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    sync_status = Column(String(10), nullable=False, default="pending", index=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
