"""
Supabase client factories for FitBook.

Three kinds of client are handed out:

- a public client (anon key) for sign-up, sign-in and token refresh,
- a user client (anon key + the user's JWT) for table queries, so that
  row-level security policies apply to every read and write,
- an admin client (service role key) for provisioning and revocation.

Public and user clients are created per call with session persistence off;
a shared client would keep the last signed-in session around for the next
request.
"""

from typing import Optional

from supabase import Client, ClientOptions, create_client

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


class SupabaseConfig:
    """Supabase credentials loaded from settings."""

    def __init__(self) -> None:
        self.url: str = settings.SUPABASE_URL
        self.anon_key: str = settings.SUPABASE_ANON_KEY
        self.service_key: str = settings.SUPABASE_SERVICE_KEY

        if not self.url or not self.anon_key:
            logger.warning("Supabase credentials not fully configured")
            logger.debug(f"SUPABASE_URL: {'set' if self.url else 'not set'}")
            logger.debug(f"SUPABASE_ANON_KEY: {'set' if self.anon_key else 'not set'}")

    @property
    def is_configured(self) -> bool:
        """Check if the public credentials are present."""
        return bool(self.url and self.anon_key)

    @property
    def has_service_role(self) -> bool:
        """Check if the service role key is present."""
        return bool(self.url and self.service_key)


config = SupabaseConfig()

_admin_client: Optional[Client] = None


def _stateless_options() -> ClientOptions:
    return ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=settings.REQUEST_TIMEOUT,
    )


def get_supabase_client() -> Client:
    """
    Create a public Supabase client for auth operations.

    Returns:
        Client authenticated with the anon key only

    Raises:
        ValueError: If Supabase is not configured
    """
    if not config.is_configured:
        raise ValueError("Supabase not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY")

    return create_client(config.url, config.anon_key, options=_stateless_options())


def get_user_client(access_token: str) -> Client:
    """
    Create a Supabase client that queries tables as the given user.

    Args:
        access_token: The user's Supabase access token

    Returns:
        Client whose PostgREST requests carry the user's JWT

    Raises:
        ValueError: If Supabase is not configured
    """
    client = get_supabase_client()
    client.postgrest.auth(access_token)
    return client


def get_supabase_admin_client() -> Client:
    """
    Get the service role client, creating it on first use.

    Bypasses row-level security; only provisioning and server-side
    sign-out use it.

    Raises:
        ValueError: If the service role key is not configured
    """
    global _admin_client

    if not config.has_service_role:
        raise ValueError(
            "Supabase admin client not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY"
        )

    if _admin_client is None:
        logger.info("Initializing Supabase admin client...")
        _admin_client = create_client(config.url, config.service_key, options=_stateless_options())
        logger.info("Supabase admin client initialized successfully")

    return _admin_client
