"""Notes attached to a lead in the remote CRM."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client
from backend.app.schemas.note import NoteCreate

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("")
async def list_notes(
    lead_id: str = Query(alias="leadId", min_length=1),
    company_id: str = Query(alias="companyId", min_length=1),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        notes = await client.get_notes_for_lead(lead_id)
    return {"notes": notes}


@router.post("")
async def create_note(
    note_in: NoteCreate,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, note_in.company_id)
    async with tenant_client(company, client_factory) as client:
        note = await client.create_note_for_lead(note_in.lead_id, note_in.title or "Note", note_in.note_body)
    return {"note": note}
