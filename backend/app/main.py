"""
Academia Platform - Backend API
Privileged request handlers for the e-learning and shop client
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from app.core.config import settings
from app.core.exceptions import register_exception_handlers

# Import API routers
from app.api import orders, videos, users, payments

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI application
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    debug=settings.API_DEBUG
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", "stripe-signature"],
)

register_exception_handlers(app)

# Include API routers
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(videos.router, prefix="/api/v1/videos", tags=["Videos"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(payments.router, prefix="/api/v1", tags=["Payments"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": f"{settings.API_TITLE} - privileged handlers",
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health():
    """Health check endpoint - reports which integrations are configured"""
    supabase_configured = bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)

    return {
        "status": "healthy" if supabase_configured else "degraded",
        "service": "academia-api",
        "version": settings.API_VERSION,
        "integrations": {
            "supabase": supabase_configured,
            "cloudflare_stream": settings.cloudflare_configured,
            "stripe": settings.stripe_configured
        }
    }
