"""Supabase client initialization."""

from supabase import AsyncClient, acreate_client

from trainai.core.config import Settings


async def create_supabase(settings: Settings) -> AsyncClient:
    """
    Create an async Supabase client for the service role.

    Called once at application start; the client is then handed to the
    stores that need it.

    Args:
        settings: Application settings

    Returns:
        Supabase async client configured with service role key

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
