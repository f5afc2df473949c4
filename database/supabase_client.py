"""
Supabase database client
"""
from typing import Optional

from supabase import create_client, Client
from loguru import logger

from app.config import get_settings


# Singleton client shared by every service
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the Supabase client instance (singleton)
    """
    global _supabase_client
    if _supabase_client is None:
        settings = get_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("Set the SUPABASE_URL and SUPABASE_KEY environment variables")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_KEY
        )
    return _supabase_client


def set_supabase_client(client: Optional[Client]) -> None:
    """Replace the shared client (None resets it)"""
    global _supabase_client
    _supabase_client = client


def is_connected() -> bool:
    """Cheap round trip against the backend"""
    try:
        get_supabase_client().table("teams").select("id").limit(1).execute()
        return True
    except Exception as e:
        logger.debug(f"Backend unreachable: {e}")
        return False
