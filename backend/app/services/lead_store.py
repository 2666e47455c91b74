"""In-memory lead list with filters, backed directly by the remote CRM.

Mutations go straight to the remote client and then re-fetch the whole
list. Failures never raise out of the store; the message is kept on
``error`` instead.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from backend.app.core.time import as_utc, utc_now
from backend.app.schemas.lead import Lead, LeadFilters
from backend.app.services.twenty_client import TwentyClient

logger = logging.getLogger(__name__)


class LeadStore:
    def __init__(self, client_factory: Callable[[], TwentyClient], company_id: Optional[str] = None):
        self.client_factory = client_factory
        self.leads: list[Lead] = []
        self.filters = LeadFilters()
        self.search_query = ""
        self.company_id = company_id
        self.sales_rep_filter: Optional[str] = None
        self.is_loading = False
        self.error: Optional[str] = None

    def set_company_id(self, company_id: Optional[str]) -> None:
        self.company_id = company_id

    def set_sales_rep_filter(self, sales_rep: Optional[str]) -> None:
        self.sales_rep_filter = sales_rep

    def set_filters(self, filters: LeadFilters) -> None:
        self.filters = filters

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    async def fetch_leads(self, sales_rep: Optional[str] = None) -> None:
        if not self.company_id:
            logger.info("No company set, skipping lead fetch")
            self.leads = []
            self.is_loading = False
            return

        effective_sales_rep = sales_rep or self.sales_rep_filter
        self.is_loading = True
        self.error = None
        try:
            async with self.client_factory() as client:
                leads = await client.list_leads(sales_rep=effective_sales_rep)
            self.leads = [lead.model_copy(update={"company_id": self.company_id}) for lead in leads]
        except Exception as exc:
            logger.error("Failed to fetch leads: %s", exc)
            self.error = str(exc) or "Failed to fetch leads"
            self.leads = []
        finally:
            self.is_loading = False

    async def add_lead(self, fields: dict[str, Any]) -> Optional[Lead]:
        if not self.company_id:
            self.error = "No company ID set"
            return None

        self.is_loading = True
        self.error = None
        try:
            lead = Lead.model_validate({"id": str(uuid.uuid4()), **fields, "company_id": self.company_id})
            async with self.client_factory() as client:
                created = await client.create_lead(lead)
            logger.info("Created lead %s", created.id)
            await self.fetch_leads()
            return created
        except Exception as exc:
            logger.error("Failed to add lead: %s", exc)
            self.error = str(exc) or "Failed to add lead"
            return None
        finally:
            self.is_loading = False

    async def update_lead(self, lead_id: str, updates: dict[str, Any]) -> None:
        self.is_loading = True
        self.error = None
        try:
            async with self.client_factory() as client:
                await client.update_lead(lead_id, updates)
            logger.info("Updated lead %s", lead_id)
            await self.fetch_leads()
        except Exception as exc:
            logger.error("Failed to update lead %s: %s", lead_id, exc)
            self.error = str(exc) or "Failed to update lead"
        finally:
            self.is_loading = False

    async def delete_lead(self, lead_id: str) -> None:
        self.is_loading = True
        self.error = None
        try:
            async with self.client_factory() as client:
                await client.delete_lead(lead_id)
            logger.info("Deleted lead %s", lead_id)
            await self.fetch_leads()
        except Exception as exc:
            logger.error("Failed to delete lead %s: %s", lead_id, exc)
            self.error = str(exc) or "Failed to delete lead"
        finally:
            self.is_loading = False

    async def sync_with_crm(self) -> None:
        await self.fetch_leads()

    def get_filtered_leads(self) -> list[Lead]:
        """Apply every active filter and the search query; all conditions must hold."""
        filters = self.filters
        leads = list(self.leads)

        if filters.status:
            wanted = {status.lower() for status in filters.status}
            leads = [lead for lead in leads if lead.status and lead.status.lower() in wanted]

        if filters.source:
            leads = [lead for lead in leads if lead.source in filters.source]

        if filters.property_type:
            leads = [lead for lead in leads if lead.property_type == filters.property_type]

        if filters.date_from or filters.date_to:
            date_from = as_utc(filters.date_from) if filters.date_from else datetime.min.replace(tzinfo=timezone.utc)
            date_to = as_utc(filters.date_to) if filters.date_to else utc_now()
            leads = [
                lead for lead in leads if lead.created_at and date_from <= as_utc(lead.created_at) <= date_to
            ]

        if filters.assigned_to:
            leads = [lead for lead in leads if lead.assigned_to == filters.assigned_to]

        if filters.sync_status:
            leads = [lead for lead in leads if lead.sync_status and lead.sync_status in filters.sync_status]

        query = (self.search_query or filters.search or "").lower()
        if query:
            leads = [
                lead
                for lead in leads
                if query in lead.name.lower()
                or query in (lead.email or "").lower()
                or query in (lead.phone or "")
                or query in (lead.address or "").lower()
                or query in (lead.city or "").lower()
                or query in (lead.notes or "").lower()
            ]

        return leads
