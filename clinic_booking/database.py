"""
Supabase connection for the document store.

Only this module talks to supabase.create_async_client; the store receives a
ready client. Clients are cached per schema for the life of the process.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Dict

from supabase import AsyncClient, AsyncClientOptions, create_async_client

from clinic_booking import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupabaseSettings:
    url: str
    key: str
    schema: str

    @classmethod
    def from_env(cls, schema: str = None) -> "SupabaseSettings":
        """
        Raises:
            ValueError: If the URL or both keys are missing
        """
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) must be set")
        return cls(url=url, key=key, schema=schema or config.SUPABASE_SCHEMA)


_clients: Dict[str, AsyncClient] = {}
_clients_lock = asyncio.Lock()


async def get_booking_client_async(schema: str = None) -> AsyncClient:
    """Cached async client bound to the schema holding the documents table."""
    settings = SupabaseSettings.from_env(schema)

    async with _clients_lock:
        client = _clients.get(settings.schema)
        if client is None:
            # service-role usage: no auth session to refresh or persist
            options = AsyncClientOptions(
                schema=settings.schema,
                auto_refresh_token=False,
                persist_session=False,
            )
            client = await create_async_client(settings.url, settings.key, options=options)
            _clients[settings.schema] = client
            logger.info(f"Connected document store to Supabase schema '{settings.schema}'")
        return client


async def close_all_clients() -> None:
    async with _clients_lock:
        for schema, client in _clients.items():
            close = getattr(client, "aclose", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning(f"Error closing Supabase client for schema {schema}: {e}")
        _clients.clear()
