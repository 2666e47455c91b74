"""Company (tenant) endpoints. API keys are encrypted at rest and returned decrypted."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.encryption import decrypt, encrypt
from backend.app.db.session import get_db
from backend.app.dependencies.crm import get_company_or_404
from backend.app.models.company import Company
from backend.app.schemas.company import CompanyCreate, CompanyRead, CompanyUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/companies", tags=["companies"])

_ENCRYPTED_FIELDS = ("twenty_api_key", "supabase_key")


def _to_read(company: Company) -> CompanyRead:
    read = CompanyRead.model_validate(company)
    decrypted = {}
    for field in _ENCRYPTED_FIELDS:
        value = getattr(company, field)
        if value:
            decrypted[field] = decrypt(value)
    return read.model_copy(update=decrypted)


def _name_taken(db: Session, name: str, exclude_id: str | None = None) -> bool:
    query = db.query(Company).filter(Company.name == name)
    if exclude_id:
        query = query.filter(Company.id != exclude_id)
    return query.first() is not None


@router.get("")
async def list_companies(db: Session = Depends(get_db)):
    companies = db.query(Company).order_by(Company.created_at.desc()).all()
    return {"companies": [_to_read(company) for company in companies]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_company(company_in: CompanyCreate, db: Session = Depends(get_db)):
    if _name_taken(db, company_in.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company with this name already exists")

    data = company_in.model_dump()
    for field in _ENCRYPTED_FIELDS:
        if data.get(field):
            data[field] = encrypt(data[field])
    company = Company(**data)
    db.add(company)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company with this name already exists")
    db.refresh(company)
    logger.info("Created company %s (%s)", company.name, company.id)
    return {"message": "Company created successfully", "company": _to_read(company)}


@router.put("")
async def update_company(company_in: CompanyUpdate, db: Session = Depends(get_db)):
    company = get_company_or_404(db, company_in.id)
    updates = company_in.model_dump(exclude_unset=True, exclude={"id"})
    if updates.get("name") and _name_taken(db, updates["name"], exclude_id=company.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company with this name already exists")

    for field, value in updates.items():
        if field in _ENCRYPTED_FIELDS and value:
            value = encrypt(value)
        setattr(company, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company with this name already exists")
    db.refresh(company)
    return {"message": "Company updated successfully", "company": _to_read(company)}


@router.delete("")
async def delete_company(company_id: str = Query(alias="id"), db: Session = Depends(get_db)):
    company = get_company_or_404(db, company_id)
    db.delete(company)
    db.commit()
    logger.info("Deleted company %s", company_id)
    return {"message": "Company deleted successfully"}
