"""Sync endpoints.

``/twenty`` mirrors remote leads into the relational ``leads`` table.
``/offline`` runs a push and pull pass between a company's offline lead
cache and its remote CRM.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.core.time import utc_now
from backend.app.db.session import get_db
from backend.app.dependencies.crm import (
    TwentyClientFactory,
    get_company_or_404,
    get_connectivity_monitor,
    get_twenty_client_factory,
    tenant_client,
    tenant_client_factory,
)
from backend.app.models.lead import Lead as LeadRow
from backend.app.schemas.lead import LeadCreate, OfflineLeadUpdate
from backend.app.services.connectivity import ConnectivityMonitor
from backend.app.services.lead_sync import LeadSyncEngine
from backend.app.services.offline_store import OfflineLeadStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])

_engines: dict[str, LeadSyncEngine] = {}


def get_offline_store() -> OfflineLeadStore:
    return OfflineLeadStore()


def get_sync_engine(
    company_id: str,
    client_factory,
    store: OfflineLeadStore,
    connectivity: ConnectivityMonitor,
) -> LeadSyncEngine:
    """One engine per company so concurrent passes share its lock."""
    engine = _engines.get(company_id)
    if engine is None:
        engine = LeadSyncEngine(store, client_factory, connectivity, company_id=company_id)
        _engines[company_id] = engine
    else:
        engine.client_factory = client_factory
        engine.store = store
        engine.connectivity = connectivity
    return engine


def reset_sync_engines() -> None:
    _engines.clear()


@router.post("/twenty")
async def sync_twenty_to_relational(
    company_id: str = Query(alias="company", min_length=1),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        remote_leads = await client.list_leads(limit=1000)

    if not remote_leads:
        return {"message": "No leads found in Twenty CRM", "synced": 0}

    existing = {
        row.twenty_id: row
        for row in db.query(LeadRow).filter(LeadRow.company_id == company_id, LeadRow.twenty_id.isnot(None)).all()
    }
    now = utc_now()
    for remote in remote_leads:
        row = existing.get(remote.id)
        if row is None:
            row = LeadRow(company_id=company_id, twenty_id=remote.id, source="twenty_crm", created_at=remote.created_at or now)
            db.add(row)
        row.name = remote.name
        row.phone = remote.phone
        row.email = remote.email
        row.address = remote.address
        row.city = remote.city
        row.state = remote.state
        row.zip_code = remote.zip_code
        row.status = remote.status
        row.assigned_to = remote.assigned_to
        row.updated_at = now
    db.commit()
    logger.info("Synced %d Twenty CRM leads into company %s", len(remote_leads), company_id)
    return {"message": "Sync completed successfully", "synced": len(remote_leads), "total": len(remote_leads)}


@router.post("/offline")
async def sync_offline(
    company_id: str = Query(alias="companyId", min_length=1),
    pull: bool = True,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
    store: OfflineLeadStore = Depends(get_offline_store),
    connectivity: ConnectivityMonitor = Depends(get_connectivity_monitor),
):
    company = get_company_or_404(db, company_id)
    engine = get_sync_engine(company.id, tenant_client_factory(company, client_factory), store, connectivity)
    result = await engine.run_cycle(pull=pull)
    return {"result": result, "stats": store.stats(company.id)}


@router.get("/stats")
async def sync_stats(
    company_id: Optional[str] = Query(default=None, alias="companyId"),
    store: OfflineLeadStore = Depends(get_offline_store),
):
    return store.stats(company_id)


@router.get("/offline/leads")
async def list_offline_leads(
    company_id: str = Query(alias="companyId", min_length=1),
    store: OfflineLeadStore = Depends(get_offline_store),
):
    return {"leads": store.all(company_id)}


@router.post("/offline/leads", status_code=status.HTTP_201_CREATED)
async def create_offline_lead(lead_in: LeadCreate, store: OfflineLeadStore = Depends(get_offline_store)):
    lead = store.create(lead_in.model_dump())
    return {"lead": lead}


@router.patch("/offline/leads/{lead_id}")
async def update_offline_lead(lead_id: str, lead_in: OfflineLeadUpdate, store: OfflineLeadStore = Depends(get_offline_store)):
    """Apply a local edit and queue the lead for the next push."""
    if not store.update(lead_id, lead_in.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    store.mark_for_sync(lead_id)
    return {"lead": store.get(lead_id)}
