"""
Supabase client used by the analysis repository.
"""

import logging
from typing import Optional

from supabase import create_client, Client

from .config import Config

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create the shared Supabase client.

    Credentials come from SUPABASE_URL / SUPABASE_SERVICE_KEY; Config.validate()
    raises ValueError when either is missing, before any network call is made.

    Returns:
        Supabase client instance
    """
    global _supabase_client

    if _supabase_client is None:
        Config.validate()
        _supabase_client = create_client(
            Config.SUPABASE_URL,
            Config.SUPABASE_SERVICE_KEY
        )
        logger.debug("Supabase client created")

    return _supabase_client

