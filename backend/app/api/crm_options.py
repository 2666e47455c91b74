"""Option lists read from the remote CRM's Lead enums."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client

router = APIRouter(prefix="/api", tags=["crm-options"])


async def _enum_values(db: Session, company_id: str, type_name: str, client_factory: TwentyClientFactory) -> list[str]:
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        return await client.get_enum_values(type_name)


@router.get("/sales-reps")
async def list_sales_reps(
    company_id: str = Query(alias="companyId"),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    return {"salesReps": await _enum_values(db, company_id, "LeadSalesRepEnum", client_factory)}


@router.get("/canvassers")
async def list_canvassers(
    company_id: str = Query(alias="companyId"),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    return {"canvassers": await _enum_values(db, company_id, "LeadCanvasserEnum", client_factory)}
