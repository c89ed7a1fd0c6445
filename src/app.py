"""
FastAPI application for the IT Helpdesk workflow.

Serves the GraphQL API and health endpoints.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config.settings import settings
from src.database.connection import init_database, test_database_connection, close_database
from src.api.graphql_api import create_graphql_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {settings.app.app_name} v{settings.app.app_version}")

    try:
        init_database()
        logger.info("Database initialized")
        yield
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise
    finally:
        # Shutdown
        logger.info("Shutting down application")
        close_database()


# Create FastAPI application
app = FastAPI(
    title=settings.app.app_name,
    description="Ticket workflow API for MIS and ITS helpdesk requests",
    version=settings.app.app_version,
    debug=settings.app.debug,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log anything that escaped the routes."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.app.debug else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Report database connectivity."""
    database_ok = test_database_connection()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "healthy" if database_ok else "unhealthy",
            "database": "connected" if database_ok else "unavailable",
            "version": settings.app.app_version,
        }
    )


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app.app_name,
        "version": settings.app.app_version,
        "graphql_url": "/graphql",
        "health_url": "/health"
    }


app.include_router(create_graphql_router(), prefix="/graphql")
