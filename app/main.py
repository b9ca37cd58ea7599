from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.config import settings
from app.db import engine, check_database_connection, connect_with_retry
from app.exceptions import AppException
from app.routes import api_router
from app.logging_config import setup_logging, get_logger
from app.middleware.logging_middleware import LoggingMiddleware

# Setup logging
setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

APP_VERSION = "2.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Starting up...")
        await connect_with_retry()
        yield
    finally:
        logger.info("Shutting down...")
        await engine.dispose()


app = FastAPI(
    title="Repair Shop Budgets API",
    description="Budgets (quotes) for vehicle repairs: parts, labor and printable PDFs",
    version=APP_VERSION,
    lifespan=lifespan
)

# Logging middleware
app.add_middleware(LoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["DELETE", "GET", "POST", "PUT"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


# Global exception handler
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "name": "Repair Shop Budgets API",
        "shop": settings.SHOP_NAME,
        "version": APP_VERSION,
    }


@app.get("/health")
async def health():
    db_status = await check_database_connection()
    return {
        "status": "ok" if db_status else "degraded",
        "database": "connected" if db_status else "disconnected"
    }
