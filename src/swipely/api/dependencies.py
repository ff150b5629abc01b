import logging
from typing import Optional, Union

from ..config import ServiceConfig
from ..local_store import LocalStore, load_seed_listings
from ..supabase_client.supabase_service import SupabaseService

LOGGER = logging.getLogger(__name__)

Store = Union[SupabaseService, LocalStore]

# Singleton instances
_config: Optional[ServiceConfig] = None
_store: Optional[Store] = None


def get_config() -> ServiceConfig:
    """Get or create the process-wide ServiceConfig"""
    global _config
    if _config is None:
        _config = ServiceConfig()
    return _config


def build_store(config: ServiceConfig) -> Store:
    """Supabase when credentials are present, otherwise the seeded in-memory store"""
    if config.supabase.configured:
        LOGGER.info("Using Supabase backend")
        return SupabaseService(config.supabase)
    LOGGER.warning("Supabase is not configured; serving seed listings from memory")
    return LocalStore(load_seed_listings(config.seed_listings_path), developers=config.developer_ids)


def get_store() -> Store:
    """Get or create the singleton store"""
    global _store
    if _store is None:
        _store = build_store(get_config())
    return _store
