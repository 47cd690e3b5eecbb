from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import os
import platform
import time

from fastapi import FastAPI, APIRouter, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import uvicorn

from config import (
    SERVER_HOST, SERVER_PORT, API_PREFIX, CORS_ORIGINS, LOG_LEVEL,
    APP_VERSION, ENVIRONMENT
)
from database import engine, get_db, init_db
from routers import auth, users, roles, departments, projects, milestones, tasks, analytics
from dashboard_routes import router as dashboard_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

START_TIME = time.time()

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"Task tracker API {APP_VERSION} ready ({ENVIRONMENT})")
    yield

app = FastAPI(title="Task Tracker API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "error": {
                "code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "message": "Internal server error",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            "path": request.url.path,
        },
    )

def format_uptime(seconds: int) -> str:
    days, seconds = divmod(seconds, 24 * 3600)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"

system_router = APIRouter(tags=["system"])

@system_router.get("/health")
def health_check(db: Session = Depends(get_db)):
    db_status = "connected"
    db_error = None
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = "error"
        db_error = str(e)
        logger.error(f"Database health check failed: {db_error}", exc_info=True)

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
        "database": {
            "status": db_status,
            "error": db_error,
            "type": engine.dialect.name,
        },
    }

@system_router.get("/ping")
def ping():
    load = os.getloadavg() if hasattr(os, "getloadavg") else ()
    return {
        "success": True,
        "message": "API server is running and accessible",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": format_uptime(int(time.time() - START_TIME)),
        "system": {
            "platform": platform.system().lower(),
            "arch": platform.machine(),
            "cpus": os.cpu_count(),
            "python": platform.python_version(),
            "load": [f"{value:.2f}" for value in load],
        },
        "version": APP_VERSION,
        "environment": ENVIRONMENT,
    }

# Include routers
for router in (
    system_router,
    auth.router,
    users.router,
    roles.router,
    departments.router,
    projects.router,
    milestones.router,
    tasks.router,
    analytics.router,
    dashboard_router,
):
    app.include_router(router, prefix=API_PREFIX)

if __name__ == "__main__":
    uvicorn.run("main:app", host=SERVER_HOST, port=SERVER_PORT, reload=ENVIRONMENT == "development")
