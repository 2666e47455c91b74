"""Lead management endpoints over the relational ``leads`` table."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.core.exceptions import EncryptionError, RemoteCRMError
from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client
from backend.app.models.lead import Lead
from backend.app.schemas.lead import LeadCreate, LeadRead, LeadUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["leads"])

# Fields whose edits are mirrored to the remote CRM record
REMOTE_SYNCED_FIELDS = ("name", "email", "phone", "address", "city", "state", "zip_code")

ENUM_FIELDS = ["status", "source", "medium", "salesRep", "canvasser", "demo"]


def format_enum_label(value: str) -> str:
    return " ".join(word.capitalize() for word in value.lower().split("_"))


def _get_lead_or_404(db: Session, lead_id: str) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


async def _push_to_remote(db: Session, lead: Lead, changes: dict, client_factory: TwentyClientFactory) -> None:
    remote_changes = {field: changes[field] for field in REMOTE_SYNCED_FIELDS if field in changes}
    if not remote_changes:
        return
    company = get_company_or_404(db, lead.company_id)
    try:
        async with tenant_client(company, client_factory) as client:
            await client.update_lead(lead.twenty_id, remote_changes)
        logger.info("Pushed lead %s changes to Twenty CRM record %s", lead.id, lead.twenty_id)
    except (RemoteCRMError, EncryptionError, HTTPException) as exc:
        # The local update already succeeded; the remote copy catches up on the next pull
        logger.error("Failed to push lead %s to Twenty CRM: %s", lead.id, exc)


@router.get("")
async def list_leads(company_id: str = Query(min_length=1), db: Session = Depends(get_db)):
    leads = db.query(Lead).filter(Lead.company_id == company_id).order_by(Lead.created_at.desc()).all()
    return {"leads": [LeadRead.model_validate(lead) for lead in leads]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(lead_in: LeadCreate, db: Session = Depends(get_db)):
    get_company_or_404(db, lead_in.company_id)
    lead = Lead(**lead_in.model_dump())
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("Created lead %s for company %s", lead.id, lead.company_id)
    return {"lead": LeadRead.model_validate(lead)}


@router.patch("")
async def update_lead(
    lead_in: LeadUpdate,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    lead = _get_lead_or_404(db, lead_in.id)
    changes = lead_in.model_dump(exclude_unset=True, exclude={"id"})
    for field, value in changes.items():
        setattr(lead, field, value)
    db.commit()
    db.refresh(lead)

    if lead.twenty_id:
        await _push_to_remote(db, lead, changes, client_factory)
    return {"lead": LeadRead.model_validate(lead)}


@router.delete("")
async def delete_lead(lead_id: str = Query(alias="id"), db: Session = Depends(get_db)):
    lead = _get_lead_or_404(db, lead_id)
    db.delete(lead)
    db.commit()
    return {"success": True}


@router.get("/enums")
async def get_lead_enums(
    company_id: str = Query(alias="companyId"),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        values = await client.get_lead_field_enums(ENUM_FIELDS)
    enums = {
        field: [{"value": value, "label": format_enum_label(value)} for value in options]
        for field, options in values.items()
    }
    return {"enums": enums}
