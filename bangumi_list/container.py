"""
Container d'injection de dependances via dependency-injector.

Construit le sous-systeme d'enrichissement (adaptateurs, cache, catalogue,
orchestrateur, retry) pour les interfaces CLI et Web. Tous les composants
sont des singletons : un seul cache et une seule liste d'echecs par
processus.
"""

from zoneinfo import ZoneInfo

from dependency_injector import containers, providers

from .adapters.api.bangumi_client import BangumiClient
from .adapters.api.bilibili_client import BilibiliClient
from .adapters.api.mikan_client import MikanClient
from .config import Settings
from .core.value_objects.cache import CacheKind
from .infrastructure.persistence.cache_store import CacheStore
from .services.catalog import CatalogService
from .services.context import EnrichmentContext
from .services.enrichment_view import EnrichmentView
from .services.orchestrator import RefreshOrchestrator
from .services.retry_engine import RetryEngine
from .services.scheduler import CacheRefreshScheduler


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        context = container.enrichment_context()
        await context.init()
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Adaptateurs fournisseurs - un client HTTP par fournisseur
    bangumi_client = providers.Singleton(
        BangumiClient,
        token=config.provided.bangumi_api_token,
        user_agent=config.provided.user_agent,
        timeout=config.provided.http_timeout,
    )
    bilibili_client = providers.Singleton(
        BilibiliClient,
        user_agent=config.provided.user_agent,
        timeout=config.provided.http_timeout,
    )
    mikan_client = providers.Singleton(
        MikanClient,
        timeout=config.provided.feed_timeout,
        proxy=config.provided.feed_proxy,
        max_retries=config.provided.feed_max_retries,
        base_delay=config.provided.feed_base_delay,
        max_concurrent=config.provided.feed_max_concurrent,
    )
    adapters = providers.Dict(
        {
            CacheKind.IMAGE: bangumi_client,
            CacheKind.VIDEO: bilibili_client,
            CacheKind.FEED: mikan_client,
        }
    )

    # Cache persiste
    cache_store = providers.Singleton(
        CacheStore,
        cache_dir=config.provided.data_dir,
        ttls=config.provided.cache_ttls,
    )

    # Catalogue bangumi-data
    timezone = providers.Singleton(ZoneInfo, config.provided.timezone)
    catalog = providers.Singleton(
        CatalogService,
        data_path=config.provided.data_path,
        data_url=config.provided.data_url,
        tz=timezone,
    )

    # Rafraichissement
    retry_engine = providers.Singleton(
        RetryEngine,
        adapters=adapters,
        cache_store=cache_store,
        interval=config.provided.retry_interval,
        max_attempts=config.provided.retry_max_attempts,
        item_delay=config.provided.retry_item_delay,
    )
    orchestrator = providers.Singleton(
        RefreshOrchestrator,
        catalog=catalog,
        cache_store=cache_store,
        adapters=adapters,
        retry_engine=retry_engine,
        chunk_size=config.provided.refresh_chunk_size,
        chunk_delay=config.provided.refresh_chunk_delay,
    )
    enrichment_view = providers.Singleton(EnrichmentView, cache_store=cache_store)
    scheduler = providers.Singleton(
        CacheRefreshScheduler,
        orchestrator=orchestrator,
        catalog=catalog,
        timezone=config.provided.timezone,
        cron_hour=config.provided.refresh_cron_hour,
        cron_minute=config.provided.refresh_cron_minute,
        startup_delay=config.provided.startup_refresh_delay,
    )

    enrichment_context = providers.Singleton(
        EnrichmentContext,
        catalog=catalog,
        cache_store=cache_store,
        adapters=adapters,
        retry_engine=retry_engine,
        orchestrator=orchestrator,
        view=enrichment_view,
        scheduler=scheduler,
    )
