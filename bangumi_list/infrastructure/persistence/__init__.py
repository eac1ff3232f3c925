"""
Persistance du cache d'enrichissement.

Usage:
    from bangumi_list.infrastructure.persistence import CacheStore

    store = CacheStore(Path(".run"), settings.cache_ttls)
    store.load()
"""

from bangumi_list.infrastructure.persistence.cache_store import CacheStore

__all__ = ["CacheStore"]
