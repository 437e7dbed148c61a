import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
# This is needed for relationships between models in different files
from . import (
    models,  # noqa: F401
    models_lodging,  # noqa: F401
    models_marketing,  # noqa: F401
    models_proposal,  # noqa: F401
    models_workflow,  # noqa: F401
)
from .database import Base, engine
from .domain.availability.router import router as availability_router
from .domain.bookings.router import admin_router as bookings_admin_router
from .domain.bookings.router import router as bookings_router
from .domain.consultations.router import admin_router as consultations_admin_router
from .domain.consultations.router import router as consultations_router
from .domain.corporate_requests.router import admin_router as corporate_requests_admin_router
from .domain.corporate_requests.router import router as corporate_requests_router
from .domain.drafts.router import router as drafts_router
from .domain.inquiries.router import admin_router as inquiries_admin_router
from .domain.inquiries.router import router as inquiries_router
from .domain.lodging.router import admin_router as lodging_admin_router
from .domain.lodging.router import router as lodging_router
from .domain.trip_proposals.router import public_router as trip_proposals_public_router
from .domain.trip_proposals.router import router as trip_proposals_router
from .domain.vehicles.router import router as vehicles_router
from .domain.wineries.router import admin_router as wineries_admin_router
from .domain.wineries.router import router as wineries_router
from .domain.workflow.router import inspections_router
from .domain.workflow.router import router as workflow_router
from .routes.auth import router as auth_router
from .routes.cron import router as cron_router
from .routes.gpt import GPT_CORS_HEADERS
from .routes.gpt import router as gpt_router
from .routes.marketing import router as marketing_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limiting and caching fall back to memory: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Walla Walla Travel API", version="1.0.0", lifespan=lifespan)


def _validation_message(errors: list) -> str:
    parts = []
    for error in errors:
        field = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query"))
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "Invalid request - " + "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header. GPT actions get their
    400 {success, message} shape.
    """
    # Check if the error is related to Authorization header
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(f"Authentication failed for {request.url.path}: Missing or invalid Authorization header")
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    if request.url.path.startswith("/api/gpt/"):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": _validation_message(exc.errors())},
            headers=GPT_CORS_HEADERS,
        )

    # For other validation errors, return 422 as normal
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
# For production with credentials (cookies), we need specific origins
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://wallawalla.travel,https://www.wallawalla.travel,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,  # Session cookie
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(trip_proposals_router)
app.include_router(trip_proposals_public_router)
app.include_router(vehicles_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(bookings_admin_router)
app.include_router(consultations_router)
app.include_router(consultations_admin_router)
app.include_router(drafts_router)
app.include_router(lodging_router)
app.include_router(lodging_admin_router)
app.include_router(wineries_router)
app.include_router(wineries_admin_router)
app.include_router(corporate_requests_router)
app.include_router(corporate_requests_admin_router)
app.include_router(inquiries_router)
app.include_router(inquiries_admin_router)
app.include_router(workflow_router)
app.include_router(inspections_router)
app.include_router(gpt_router)
app.include_router(marketing_router)
app.include_router(cron_router)


@app.get("/")
def root():
    return {"message": "Walla Walla Travel API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
