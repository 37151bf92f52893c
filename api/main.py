"""Main FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import DatabaseConnection, get_redis
from api.routes import app_config_router, categories_router, cron_router, news_router, providers_router
from api.events import redis_subscriber
from engine.cache import provider_cache
from shared.config import settings
from shared.exceptions import AppError

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Background task for Redis subscriber
subscriber_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global subscriber_task

    # Startup
    await DatabaseConnection.init_mongo()
    await DatabaseConnection.init_redis()

    # Drop the provider cache whenever another process changes provider state
    redis_client = await get_redis()
    subscriber_task = asyncio.create_task(redis_subscriber(redis_client, provider_cache))

    yield

    # Shutdown
    if subscriber_task:
        subscriber_task.cancel()
        try:
            await subscriber_task
        except asyncio.CancelledError:
            pass

    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="NewsByte Admin API",
    description="News publishing and AI provider management for the NewsByte admin console",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map application errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Invalid input is a 400, matching the admin console's expectations."""
    return JSONResponse(
        status_code=400,
        content={"error": "Missing required fields", "detail": jsonable_errors(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"{request.method} {request.url.path} failed")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


# Include routers
app.include_router(news_router)
app.include_router(cron_router)
app.include_router(categories_router)
app.include_router(providers_router)
app.include_router(app_config_router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "NewsByte Admin API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
