import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
# This is needed for relationships between models in different files
from . import (
    models,  # noqa: F401
    models_invoice,  # noqa: F401
)
from .cache import Cache, get_cache_stats
from .config import FRONTEND_URL, LOG_LEVEL, REALTIME_ENABLED, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.analytics.router import router as analytics_router
from .domain.bookings.router import router as bookings_router
from .domain.clients.router import router as clients_router
from .domain.overhead.router import router as overhead_router
from .domain.services.router import router as services_router
from .domain.tenants.router import router as tenants_router
from .realtime import ChangeFeed, RealtimeBridge
from .security_middleware import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
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

    app.state.cache = Cache()
    app.state.change_feed = ChangeFeed()
    app.state.realtime = None

    if REALTIME_ENABLED:
        bridge = RealtimeBridge(app.state.cache)
        try:
            bridge.subscribe_all()
            app.state.realtime = bridge
        except Exception as e:
            logger.warning(
                f"Realtime bridge unavailable - cache entries will expire by TTL only: {e}"
            )

    yield

    logger.info("Application shutting down...")
    if app.state.realtime is not None:
        app.state.realtime.close()


app = FastAPI(title="SalonSphere API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    # For other validation errors, return 422 as normal
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = [origin.strip() for origin in FRONTEND_URL.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(tenants_router)
app.include_router(clients_router)
app.include_router(services_router)
app.include_router(bookings_router)
app.include_router(overhead_router)
app.include_router(analytics_router)


@app.get("/")
def root():
    return {"message": "SalonSphere API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check(request: Request):
    """Check cache connectivity for monitoring"""
    cache = getattr(request.app.state, "cache", None) or Cache()
    stats = get_cache_stats(cache)
    return {"status": "healthy" if stats.get("available") else "unhealthy", "redis": stats}
