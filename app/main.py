"""FastAPI Heartbeat. Lean."""

from __future__ import annotations

import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.Core.config import get_settings
from app.common.errors import DomainError, status_for
import app.DB.models  # noqa: F401  (registers every mapper)
from app.features.districts.endpoints import (
    district_router as district_dashboard_router,
    master_router as master_dashboard_router,
    router as districts_router,
)
from app.features.events.endpoints import (
    district_router as district_events_router,
    master_router as master_events_router,
    student_router as student_events_router,
)
from app.features.levels.endpoints import (
    admin_router as levels_admin_router,
    router as courses_router,
    student_router as levels_student_router,
)
from app.features.notifications.endpoints import (
    district_router as district_notifications_router,
    master_router as master_notifications_router,
    router as student_notifications_router,
)
from app.features.progress.endpoints import router as progress_router
from app.features.quizzes.endpoints import (
    admin_router as quizzes_admin_router,
    router as quiz_submit_router,
    student_router as quizzes_student_router,
)
from app.features.users.endpoints import router as users_router

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title=_settings.app_name)
_START_TIME = datetime.now(timezone.utc)
logger = logging.getLogger("request")


# ------------------------
# CORS Setup
# ------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allow_origins,
    allow_credentials="*" not in _settings.allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger.info("request.start request_id=%s method=%s path=%s", req_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info("request.end request_id=%s path=%s status=%s", req_id, request.url.path, response.status_code)
    return response


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    t0 = time.perf_counter()
    resp = await call_next(request)
    dt = int((time.perf_counter() - t0) * 1000)
    logger.info("%s %s %dms %s", request.method, request.url.path, dt, resp.status_code)
    return resp


# ------------------------
# Error translation
# ------------------------
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    code = status_for(exc)
    logger.info("domain_error path=%s status=%s detail=%s", request.url.path, code, exc.message)
    return JSONResponse(status_code=code, content={"detail": exc.message})


# ------------------------
# Routers
# ------------------------
app.include_router(users_router)
app.include_router(districts_router)
app.include_router(courses_router)
app.include_router(quiz_submit_router)
app.include_router(levels_student_router)
app.include_router(quizzes_student_router)
app.include_router(progress_router)
app.include_router(student_notifications_router)
app.include_router(student_events_router)
app.include_router(master_dashboard_router)
app.include_router(levels_admin_router)
app.include_router(quizzes_admin_router)
app.include_router(master_notifications_router)
app.include_router(master_events_router)
app.include_router(district_dashboard_router)
app.include_router(district_notifications_router)
app.include_router(district_events_router)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness probe")
def healthz() -> Dict[str, Any]:
    from app.DB.session import engine

    now = datetime.now(timezone.utc)
    uptime_seconds = (now - _START_TIME).total_seconds()
    db_status: str = "unknown"
    db_latency_ms: float | None = None

    try:
        start = time.perf_counter()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_latency_ms = round((time.perf_counter() - start) * 1000, 2)
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = f"error:{type(e).__name__}"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round(uptime_seconds, 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "database": (
                {"status": db_status, "latency_ms": db_latency_ms}
                if db_status == "ok"
                else {"status": db_status}
            ),
        },
        "counts": {"routes": len(app.routes)},
    }
