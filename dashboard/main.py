import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from dashboard.core.config import settings
from dashboard.core.errors import DashboardError
from dashboard.core.logging_config import setup_logging
from dashboard.db.redis import get_redis
from dashboard.db.session import check_connection, get_db
from dashboard.routes.apps import router as apps_router
from dashboard.routes.auth import router as auth_router
from dashboard.routes.e2e_manual_runs import router as e2e_manual_runs_router
from dashboard.routes.e2e_reports import router as e2e_reports_router
from dashboard.routes.fcm import router as fcm_router
from dashboard.routes.files import router as files_router
from dashboard.routes.jira import router as jira_router
from dashboard.routes.notifications import router as notifications_router
from dashboard.routes.pull_requests import router as pull_requests_router
from dashboard.routes.todos import router as todos_router
from dashboard.schemas.health import HealthResponse
from dashboard.services.http import close_shared_clients

setup_logging()
logger = logging.getLogger(__name__)

SERVICE_NAME = "my-dashboard-api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_shared_clients()


app = FastAPI(title="My Dashboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "%s %s -> %s (%.2fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": request.client.host if request.client else None,
            },
        )
        return response


app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(todos_router)
app.include_router(apps_router)
app.include_router(pull_requests_router)
app.include_router(jira_router)
app.include_router(e2e_reports_router)
app.include_router(e2e_manual_runs_router)
app.include_router(notifications_router)
app.include_router(fcm_router)
app.include_router(files_router)

if not settings.API_SECURITY_KEY:
    logger.warning("API_SECURITY_KEY is not set. Every /api request will be rejected.")


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        },
    )


@app.get("/health", response_model=HealthResponse)
def health(db: Session = Depends(get_db), redis: Redis = Depends(get_redis)):
    db_connected = check_connection(db)
    try:
        redis_connected = bool(redis.ping())
    except RedisError as e:
        logger.error("Redis health check failed: %s", e)
        redis_connected = False
    return HealthResponse(
        status="ok" if db_connected and redis_connected else "degraded",
        service=SERVICE_NAME,
        db_connected=db_connected,
        redis_connected=redis_connected,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/")
def root():
    return {
        "message": "My Dashboard API is running",
        "docs": "/docs",
        "health": "/health",
    }
