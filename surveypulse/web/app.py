"""
FastAPI Web Application - SurveyPulse Analytics API
===================================================

JSON endpoints behind the survey dashboard: the executive dashboard, the
live response feed, a health probe and a spreadsheet import.

Every response is wrapped in an envelope:
    success: {"success": true, ...payload}
    error:   {"success": false, "error": msg, "message": msg}

Tenant context arrives already resolved (``X-Tenant-Id`` header or the
``tenant_id`` cookie); authentication happens upstream.
"""

import io
import logging
from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, UploadFile, File
from fastapi.responses import JSONResponse

from ..application.dashboard import DashboardService
from ..application.fetcher import ResilientResponseFetcher
from ..application.queries import ExecutiveQuery, LiveFeedQuery
from ..domain.periods import get_local_zone
from ..infrastructure.config import get_settings
from ..infrastructure.importer import ResponseImporter
from ..infrastructure.persistence import (
    Database,
    ResponseStore,
    ResponseStoreError,
    SQLiteResponseStore,
    create_response_store,
)

logger = logging.getLogger(__name__)

# ── Globals ────────────────────────────────────────────────────────
store: Optional[ResponseStore] = None
service: Optional[DashboardService] = None
database: Optional[Database] = None

ACTION_EXECUTIVE = "survey-executive"
ACTION_LIVE_FEED = "survey-live-feed"

NO_TENANT_MESSAGE = "User not associated with a tenant"
STORE_FAILURE_MESSAGE = "Failed to fetch survey responses"
IMPORT_EXTENSIONS = ['.xlsx', '.xls', '.csv']


def configure(response_store: ResponseStore, dashboard: Optional[DashboardService] = None):
    """Wire the app to a store. Called by the lifespan and by tests."""
    global store, service, database
    store = response_store
    service = dashboard or DashboardService(ResilientResponseFetcher(response_store))
    database = response_store.database if isinstance(response_store, SQLiteResponseStore) else None


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=logging.INFO)

    if service is None:
        settings = get_settings()
        for issue in settings.validate():
            logger.warning(issue)

        response_store = create_response_store(settings.store)
        configure(
            response_store,
            DashboardService(
                ResilientResponseFetcher(response_store),
                tz=get_local_zone(settings.analytics.timezone),
                cache_ttl_seconds=settings.analytics.cache_ttl_seconds,
            ),
        )
    logger.info(f"Response store ready: {store.name}")
    yield


app = FastAPI(title="SurveyPulse", description="Survey Response Analytics API", lifespan=lifespan)


# ── Envelopes ──────────────────────────────────────────────────

def success_response(payload: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, **payload})


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "message": message},
    )


# ── Tenant helpers ─────────────────────────────────────────────

def _get_current_tenant(request: Request) -> Optional[str]:
    """Tenant id from the X-Tenant-Id header or the tenant_id cookie, or None."""
    tenant_id = request.headers.get("x-tenant-id") or request.cookies.get("tenant_id")
    if tenant_id:
        tenant_id = tenant_id.strip()
    return tenant_id or None


# ── Handlers ───────────────────────────────────────────────────

def _survey_executive(request: Request) -> JSONResponse:
    tenant_id = _get_current_tenant(request)
    if not tenant_id:
        return error_response(NO_TENANT_MESSAGE, 403)

    try:
        query = ExecutiveQuery(**request.query_params)
        payload = service.executive(tenant_id, query)
        return success_response(payload)
    except ResponseStoreError as e:
        logger.error(f"Executive dashboard fetch failed for tenant {tenant_id}: {e}")
        return error_response(str(e) or STORE_FAILURE_MESSAGE, 500)
    except Exception as e:
        logger.exception(f"Executive dashboard error for tenant {tenant_id}: {e}")
        return error_response("Failed to build executive dashboard", 500)


def _survey_live_feed(request: Request) -> JSONResponse:
    tenant_id = _get_current_tenant(request)
    if not tenant_id:
        return error_response(NO_TENANT_MESSAGE, 403)

    try:
        query = LiveFeedQuery(**request.query_params)
        return success_response(service.live_feed(tenant_id, query))
    except ResponseStoreError as e:
        logger.error(f"Live feed fetch failed for tenant {tenant_id}: {e}")
        return error_response(str(e) or STORE_FAILURE_MESSAGE, 500)
    except Exception as e:
        logger.exception(f"Live feed error for tenant {tenant_id}: {e}")
        return error_response("Failed to load live feed", 500)


# ── Analytics routes ───────────────────────────────────────────

@app.get("/api/analytics")
def analytics(request: Request, action: str = ""):
    if action == ACTION_EXECUTIVE:
        return _survey_executive(request)
    if action == ACTION_LIVE_FEED:
        return _survey_live_feed(request)
    return error_response("Invalid action", 400)


@app.get("/api/analytics/survey-executive")
def survey_executive(request: Request):
    return _survey_executive(request)


@app.get("/api/analytics/survey-live-feed")
def survey_live_feed(request: Request):
    return _survey_live_feed(request)


@app.get("/api/health")
def health():
    return {"status": "ok", "store": store.name if store else None}


# ── Import ─────────────────────────────────────────────────────

@app.post("/api/responses/import")
async def import_responses(request: Request, file: UploadFile = File(...)):
    """Import survey responses from Excel/CSV for the current tenant."""
    tenant_id = _get_current_tenant(request)
    if not tenant_id:
        return error_response(NO_TENANT_MESSAGE, 403)

    if database is None:
        return error_response("Import requires the sqlite response store", 400)

    if not file.filename:
        return error_response("No file selected", 400)

    ext = Path(file.filename).suffix.lower()
    if ext not in IMPORT_EXTENSIONS:
        return error_response("Invalid file type. Use .xlsx, .xls, or .csv", 400)

    try:
        content = await file.read()
        importer = ResponseImporter(database)
        result = importer.import_file(io.BytesIO(content), tenant_id=tenant_id, filename=file.filename)
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.exception(f"Response import error for tenant {tenant_id}: {e}")
        return error_response(f"Import failed: {str(e)[:80]}", 500)

    if not result['parsed']:
        return error_response("No rated responses found in file", 400)

    logger.info(f"Imported {result['added']} responses for tenant {tenant_id}")
    return success_response(result)
