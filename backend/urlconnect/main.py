"""
URLConnect Backend - Main FastAPI Application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
import logging
import sys

from urlconnect import __version__
from urlconnect.core.config import settings
from urlconnect.core.redis_client import connect_redis, disconnect_redis

from urlconnect.api import proxy, url

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info("Starting URLConnect gateway...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"URL store backend: {settings.URL_STORE_BACKEND}")
    if settings.ENFORCE_PROXY_ALLOWLIST:
        logger.info(f"Proxy allowlist enforced: {settings.ALLOWED_PROXY_DOMAINS}")
    
    try:
        # Startup
        if settings.URL_STORE_BACKEND == "redis":
            logger.info("Initializing Redis connection...")
            await connect_redis()
        
        logger.info("All services initialized successfully")
        
        yield
        
        # Shutdown
        logger.info("Shutting down application...")
        if settings.URL_STORE_BACKEND == "redis":
            await disconnect_redis()
        logger.info("Shutdown complete")
    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        raise


app = FastAPI(
    title="URLConnect API",
    description="Embedding gateway for externally hosted pages",
    version=__version__,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/api/redoc" if settings.ENVIRONMENT == "development" else None,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(url.router, prefix="/api/url", tags=["URL"])
app.include_router(proxy.router, tags=["Proxy"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT
    }


@app.get("/")
async def root():
    """Root endpoint redirect info"""
    return {
        "message": "URLConnect API",
        "docs": "/api/docs",
        "health": "/api/health"
    }
