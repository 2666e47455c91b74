"""Files (attachments) of a lead in the remote CRM."""

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("")
async def list_files(
    company_id: str = Query(alias="companyId", min_length=1),
    lead_id: str = Query(alias="leadId", min_length=1),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        files = await client.list_attachments(lead_id)
    return {"files": files}


@router.post("")
async def upload_file(
    file: UploadFile = File(...),
    lead_id: str = Form(alias="leadId", min_length=1),
    company_id: str = Form(alias="companyId", min_length=1),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, company_id)
    content = await file.read()
    mime_type = file.content_type or "application/octet-stream"
    logger.info("Uploading %s (%d bytes) to lead %s", file.filename, len(content), lead_id)
    async with tenant_client(company, client_factory) as client:
        attachment = await client.upload_attachment(lead_id, file.filename or "upload", content, mime_type)
    return {"success": True, "file": attachment}
