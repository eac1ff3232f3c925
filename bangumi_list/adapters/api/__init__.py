"""
Clients des fournisseurs de donnees d'enrichissement.

Ce module fournit un adaptateur par fournisseur :
- BangumiClient: images de couverture (bangumi.tv)
- BilibiliClient: bvid des PV (bilibili + biliplus)
- MikanClient: flux RSS des releases (mikanani.me)

Infrastructure partagee:
- RateLimitError: Exception pour les erreurs 429
- with_retry / request_with_retry: backoff exponentiel sur rate limiting
- wait_backoff: strategie d'attente deterministe du client Mikan

Les clients implementent IFetchAdapter defini dans core/ports/fetchers.py.
"""

from bangumi_list.adapters.api.bangumi_client import BangumiClient
from bangumi_list.adapters.api.bilibili_client import BilibiliClient
from bangumi_list.adapters.api.mikan_client import FeedFormatError, MikanClient
from bangumi_list.adapters.api.retry import (
    RateLimitError,
    request_with_retry,
    with_retry,
)

__all__ = [
    "BangumiClient",
    "BilibiliClient",
    "FeedFormatError",
    "MikanClient",
    "RateLimitError",
    "request_with_retry",
    "with_retry",
]
