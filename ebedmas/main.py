# ============================================================================
# FastAPI Application Entry Point
# ============================================================================
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio
import logging

from ebedmas.config import get_settings
from ebedmas.core.exceptions import EbedmasException, InvalidPricingConfiguration

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown"""
    logger.info("Starting Ebedmas learning platform...")

    # Register every model on Base.metadata before create_all
    import ebedmas.models  # noqa: F401
    from ebedmas.core.database import engine, Base, async_session_maker
    from ebedmas.services.payments.pricing import pricing_store

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    # Pricing is optional at startup; quote and trial calls fail until it is set
    try:
        async with async_session_maker() as db:
            await pricing_store.load(db)
    except InvalidPricingConfiguration as e:
        logger.warning(f"Pricing not loaded: {e.detail}")

    # Edits made through another process reach this one on the next reload
    reload_task = None
    if settings.PRICING_RELOAD_SECONDS > 0:
        reload_task = asyncio.create_task(
            pricing_store.refresh_every(async_session_maker, settings.PRICING_RELOAD_SECONDS)
        )

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down...")
    if reload_task is not None:
        reload_task.cancel()
        try:
            await reload_task
        except asyncio.CancelledError:
            pass
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    description="Curriculum practice and subscription billing API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception Handler
@app.exception_handler(EbedmasException)
async def ebedmas_exception_handler(request: Request, exc: EbedmasException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code}
    )

# Health Check - Root level
@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
async def health_check():
    from ebedmas.services.payments.pricing import pricing_store
    return {"status": "healthy", "app": settings.APP_NAME, "pricing_loaded": pricing_store.is_loaded}

from ebedmas.api.v1.router import api_router  # noqa: E402
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
