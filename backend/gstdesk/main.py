import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .db import init_db
from .api.routers import (
    health, auth, units, categories, customers, products, purchases,
    invoices, stock, reports, company, dashboard, import_export,
)
from .application.errors import GSTDeskError, NotFoundError, ConflictError
from .infrastructure.logging_config import setup_logging
from .config import settings as app_settings

setup_logging()
logger = logging.getLogger(__name__)

# Do not fail on first start when the database is not configured yet
try:
    init_db()
except Exception as e:
    logger.warning("Could not initialise the database: %s. Check DATABASE_URL.", e)

app = FastAPI(
    title="GSTDesk",
    version="0.1.0",
    description="GST invoicing, purchases and stock ledger for small Indian businesses",
    docs_url=None if app_settings.is_production else "/docs",
    redoc_url=None if app_settings.is_production else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
    expose_headers=["X-Row-Count", "Content-Disposition"],
)

@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # HSTS only behind HTTPS in production
    if app_settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response

@app.exception_handler(GSTDeskError)
async def domain_error_handler(request: Request, exc: GSTDeskError):
    """Domain errors that escape a router without being mapped."""
    status_code = 404 if isinstance(exc, NotFoundError) else 409 if isinstance(exc, ConflictError) else 400
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

for module in (
    health, auth, units, categories, customers, products, purchases,
    invoices, stock, reports, company, dashboard, import_export,
):
    app.include_router(module.router)
