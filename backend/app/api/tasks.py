"""Tasks linked to leads in the remote CRM."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client
from backend.app.schemas.task import TaskCreate, TaskUpdate

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    company_id: str = Query(alias="companyId", min_length=1),
    lead_id: Optional[str] = Query(default=None, alias="leadId"),
    sales_rep: Optional[str] = Query(default=None, alias="salesRep"),
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    """Tasks of one lead, or of every lead (optionally one sales rep's) when ``leadId`` is omitted."""
    company = get_company_or_404(db, company_id)
    async with tenant_client(company, client_factory) as client:
        if lead_id:
            tasks = await client.get_tasks_for_lead(lead_id)
        else:
            tasks = await client.list_tasks(sales_rep=sales_rep)
    return {"tasks": tasks}


@router.post("")
async def create_task(
    task_in: TaskCreate,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, task_in.company_id)
    async with tenant_client(company, client_factory) as client:
        task = await client.create_task(
            task_in.lead_id,
            task_in.title,
            body=task_in.body,
            status=task_in.status,
            due_at=task_in.due_at,
        )
    return {"success": True, "task": task}


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    task_in: TaskUpdate,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    updates = task_in.updates.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updates provided")
    company = get_company_or_404(db, task_in.company_id)
    async with tenant_client(company, client_factory) as client:
        task = await client.update_task(task_id, updates)
    return {"success": True, "task": task}
