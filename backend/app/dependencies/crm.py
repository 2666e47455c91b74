"""Per-tenant remote CRM access for route handlers."""

import logging
from typing import Callable

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.encryption import decrypt
from backend.app.models.company import Company
from backend.app.services.connectivity import ConnectivityMonitor
from backend.app.services.twenty_client import TwentyClient

logger = logging.getLogger(__name__)

TwentyClientFactory = Callable[[str, str], TwentyClient]

_connectivity = ConnectivityMonitor(online=True)


def get_connectivity_monitor() -> ConnectivityMonitor:
    return _connectivity


def get_twenty_client_factory() -> TwentyClientFactory:
    """Return the constructor used to reach a tenant's CRM; overridden in tests."""
    return TwentyClient


def get_company_or_404(db: Session, company_id: str) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


def tenant_client_factory(company: Company, factory: TwentyClientFactory) -> Callable[[], TwentyClient]:
    """Bind ``factory`` to the company's URL and decrypted key.

    The key is decrypted here, at point of use, and never stored in clear.
    """
    if not company.twenty_api_url or not company.twenty_api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Twenty CRM not configured for this company",
        )
    api_url = company.twenty_api_url
    api_key = decrypt(company.twenty_api_key)
    logger.debug("Using Twenty CRM at %s for company %s", api_url, company.id)
    return lambda: factory(api_url, api_key)


def tenant_client(company: Company, factory: TwentyClientFactory) -> TwentyClient:
    return tenant_client_factory(company, factory)()
