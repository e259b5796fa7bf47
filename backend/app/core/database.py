"""
Supabase connection

Every handler talks to the hosted Postgres instance through the Supabase
client using the service-role key (bypasses row level security). The client
is created lazily so that importing the application does not require
credentials.

Author: Academia
"""
import logging
from typing import Optional

from supabase import create_client, Client

from .config import settings


logger = logging.getLogger(__name__)

_supabase: Optional[Client] = None


def get_supabase() -> Client:
    """
    FastAPI dependency that returns the shared service-role Supabase client

    Usage:
        @router.post("/orders/validate")
        async def validate(sb: Client = Depends(get_supabase)):
            ...

    Raises:
        ConfigurationError if SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing
    """
    global _supabase

    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            from .exceptions import ConfigurationError
            raise ConfigurationError("Supabase is not configured")

        logger.info("Creating Supabase service client")
        _supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)

    return _supabase


def first_row(response) -> Optional[dict]:
    """Return the first row of a PostgREST response, or None when empty"""
    data = getattr(response, "data", None)
    if not data:
        return None
    if isinstance(data, list):
        return data[0]
    return data
