"""FastAPI application entry point"""

import os
import sys
import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from frugsy_api.core.config import settings
from frugsy_api.models.errors import ApplicationError
from frugsy_api.models.schemas import ErrorResponse
from frugsy_api.api import search, progress

# Configure logging early with force=True to override any existing config
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True,
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_cleanup_task = None


@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.code.value}: {exc.message}")
    body = ErrorResponse(**exc.model_dump())
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


@app.on_event("startup")
async def startup_event():
    """Log startup diagnostic information and start background tasks"""
    global _cleanup_task
    logger.info("=" * 60)
    logger.info("PRICE SEARCH SERVICE STARTING")
    logger.info(f"PID: {os.getpid()}  environment: {settings.environment}")
    if not settings.google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not set; location lookups will fail")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; price lookups will return nothing")
    logger.info("=" * 60)

    _cleanup_task = asyncio.create_task(search.cleanup_old_sessions())
    logger.info("Background cleanup task started")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down price search service...")
    if _cleanup_task is not None:
        _cleanup_task.cancel()
    try:
        await search.close_base_orchestrator()
    except Exception as e:
        logger.warning(f"Error closing HTTP clients: {e}")
    logger.info("Price search service shutdown complete")


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "healthy", "version": settings.api_version}


@app.get("/health")
async def health():
    """Health check for monitoring"""
    return {"status": "healthy"}


# Register API routes
app.include_router(search.router, prefix="/api", tags=["search"])
app.include_router(progress.router, prefix="/sse", tags=["progress"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("frugsy_api.main:app", host=settings.backend_host, port=settings.backend_port)
