# Spartan CRM backend entrypoint.

import logging
import sys

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api import companies
from backend.app.api import crm_options
from backend.app.api import files
from backend.app.api import leads
from backend.app.api import mobile_users
from backend.app.api import notes
from backend.app.api import sync
from backend.app.api import tasks
from backend.app.api import users
from backend.app.api.auth.router import router as auth_router
from backend.app.core.exceptions import EncryptionError, RemoteCRMError
from backend.app.core.settings import get_settings
from backend.app.db.base import Base, OfflineBase
from backend.app.db.offline_session import offline_engine
from backend.app.db.session import SessionLocal, engine
from backend.app.dependencies.crm import get_connectivity_monitor, tenant_client_factory
from backend.app.models.company import Company
from backend.app.services.lead_sync import initialize_sync_listeners
from backend.app.services.offline_store import OfflineLeadStore
from backend.app.services.twenty_client import TwentyClient

settings = get_settings()


def _configure_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    if not root_logger.handlers:
        root_logger.addHandler(handler)
    logging.getLogger("httpx").setLevel(logging.WARNING)


_configure_logging()
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)
OfflineBase.metadata.create_all(bind=offline_engine)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(companies.router)
app.include_router(users.router)
app.include_router(mobile_users.router)
app.include_router(auth_router)
app.include_router(leads.router)
app.include_router(crm_options.router)
app.include_router(notes.router)
app.include_router(tasks.router)
app.include_router(files.router)
app.include_router(sync.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Handlers may pass a dict detail to add fields next to "error"
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": str(error.get("msg", "")), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning("Validation failed on %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(RemoteCRMError)
async def remote_crm_error_handler(request: Request, exc: RemoteCRMError) -> JSONResponse:
    logger.error("Twenty CRM call failed on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=500, content={"error": "Twenty CRM request failed", "details": exc.message})


@app.exception_handler(EncryptionError)
async def encryption_error_handler(request: Request, exc: EncryptionError) -> JSONResponse:
    logger.error("Encryption failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Failed to process credentials", "details": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
def read_root():
    return {"app": "Spartan CRM backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
async def start_background_sync():
    if not settings.sync_company_id:
        return
    db = SessionLocal()
    try:
        company = db.query(Company).filter(Company.id == settings.sync_company_id).first()
        if not company:
            logger.warning("SYNC_COMPANY_ID %s does not match a company; background sync disabled", settings.sync_company_id)
            return
        try:
            client_factory = tenant_client_factory(company, TwentyClient)
        except (HTTPException, EncryptionError) as exc:
            logger.error("Background sync disabled for company %s: %s", company.id, exc)
            return
    finally:
        db.close()

    connectivity = get_connectivity_monitor()
    sync_engine = sync.get_sync_engine(company.id, client_factory, OfflineLeadStore(), connectivity)
    app.state.sync_controller = initialize_sync_listeners(
        sync_engine,
        connectivity,
        interval_seconds=settings.sync_interval_seconds,
    )
    logger.info("Background lead sync started for company %s every %ss", company.id, settings.sync_interval_seconds)


@app.on_event("shutdown")
async def stop_background_sync():
    controller = getattr(app.state, "sync_controller", None)
    if controller is not None:
        controller.stop()
