"""
FastAPI application entry point.
Includes security middleware, domain + global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from stallhub.routers import events, stall_types, stalls, checkin, health
from stallhub.database import create_tables
from stallhub.config import settings
from stallhub.services.errors import DomainError, ErrorCode
from stallhub.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="StallHub Event Stall API",
    description="Stall inventory, builder bookings and check-in references for property exhibitions.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (admin / builder / buyer dashboards call the API from the browser) ─
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the frontend origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth in front of the dashboards' calls.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
DOMAIN_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_REFERENCE: status.HTTP_404_NOT_FOUND,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_AVAILABLE_STALLS: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    ErrorCode.HAS_ACTIVE_BOOKINGS: status.HTTP_409_CONFLICT,
}


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info(f"{request.method} {request.url.path} refused: {exc}")
    return JSONResponse(
        status_code=DOMAIN_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        content={"error": exc.code.value, "detail": exc.message, **exc.details},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(events.router,      prefix="/api/v1", tags=["Events"])
app.include_router(stall_types.router, prefix="/api/v1", tags=["Stall Types"])
app.include_router(stalls.router,      prefix="/api/v1", tags=["Stalls & Bookings"])
app.include_router(checkin.router,     prefix="/api/v1", tags=["Check-in"])
app.include_router(health.router,      prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("StallHub backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(f"Check-in URLs point at {settings.FRONTEND_BASE_URL}")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info("StallHub backend shutting down...")
