"""
Objets valeur immutables du cache d'enrichissement.

Exports :
- CacheKind : Type de donnee cachee (IMAGE, VIDEO, FEED)
- EMPTY : Sentinelle "le fournisseur n'a rien"
- CacheEntry : Valeur cachee et instant de recuperation
- FailedItem : Recuperation en echec en attente de retry
- FeedContent, FeedItem, FeedEnclosure : Flux de releases parse
"""

from bangumi_list.core.value_objects.cache import (
    EMPTY,
    CacheEntry,
    CacheKind,
    CacheValue,
    FailedItem,
    FeedContent,
    FeedEnclosure,
    FeedItem,
)

__all__ = [
    "EMPTY",
    "CacheEntry",
    "CacheKind",
    "CacheValue",
    "FailedItem",
    "FeedContent",
    "FeedEnclosure",
    "FeedItem",
]
