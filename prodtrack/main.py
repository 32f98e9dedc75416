# prodtrack/main.py

import json
import logging
import time

from fastapi import FastAPI, Request

from .bootstrap import run_bootstrap
from .config import settings, setup_logging
from .database import create_db_and_tables
from .errors import install_exception_handlers

from .api import auth as auth_api
from .api import companies as companies_api
from .api import clients as clients_api
from .api import operators as operators_api
from .api import products as products_api
from .api import stages as stages_api
from .api import targets as targets_api
from .api import orders as orders_api
from .api import work_plans as work_plans_api
from .api import production_records as records_api
from .api import appraisals as appraisals_api
from .api import alerts as alerts_api
from .api import reports as reports_api
from .api import grid as grid_api

logger = logging.getLogger("prodtrack.http")

SENSITIVE_KEYS = {"password", "new_password", "token", "authorization", "secret"}


def mask_body(data):
    if isinstance(data, dict):
        return {k: ("***" if str(k).lower() in SENSITIVE_KEYS else mask_body(v)) for k, v in data.items()}
    if isinstance(data, list):
        return [mask_body(v) for v in data]
    return data


app = FastAPI(title="ProdTrack - Ceramic Production Tracking")

install_exception_handlers(app)

# Include API routers
app.include_router(auth_api.router)
app.include_router(companies_api.router)
app.include_router(clients_api.router)
app.include_router(operators_api.router)
app.include_router(products_api.router)
app.include_router(stages_api.router)
app.include_router(targets_api.router)
app.include_router(orders_api.router)
app.include_router(work_plans_api.router)
app.include_router(records_api.router)
app.include_router(appraisals_api.router)
app.include_router(alerts_api.router)
app.include_router(reports_api.router)
app.include_router(grid_api.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    info = {"args": dict(request.query_params)}
    if settings.log_body and request.method in ("POST", "PUT", "PATCH"):
        raw = await request.body()
        if "application/json" in (request.headers.get("content-type") or "").lower():
            try:
                info["body"] = mask_body(json.loads(raw or b"null"))
            except ValueError:
                info["body"] = "<invalid json>"
    logger.info("REQ %s %s %s", request.method, request.url.path, info)

    response = await call_next(request)
    logger.info(
        "RES %s %s %s dur=%.3fs",
        response.status_code, request.method, request.url.path, time.time() - start,
    )
    return response


@app.on_event("startup")
async def startup_event():
    setup_logging()
    create_db_and_tables()
    run_bootstrap()
    logger.info("ProdTrack started (db=%s)", settings.database_url.split("://", 1)[0])


@app.get("/api/health")
def health():
    return {"status": "ok"}
