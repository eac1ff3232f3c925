"""
Contexte d'enrichissement : cycle de vie du sous-systeme de cache.

Regroupe le cache, les adaptateurs, l'orchestrateur, le moteur de retry,
la vue et le scheduler derriere un objet construit explicitement (par le
container) et injecte dans les couches CLI et HTTP. init() charge le cache
et le catalogue puis demarre le scheduler ; shutdown() annule minuteurs et
jobs, attend les taches en cours et sauvegarde le cache.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from loguru import logger

from bangumi_list.core.entities.catalog import BangumiItem
from bangumi_list.core.ports.fetchers import IFetchAdapter
from bangumi_list.core.value_objects.cache import CacheKind
from bangumi_list.infrastructure.persistence.cache_store import CacheStore
from bangumi_list.services.catalog import CatalogService
from bangumi_list.services.enrichment_view import EnrichmentView
from bangumi_list.services.orchestrator import RefreshOrchestrator, RefreshStats
from bangumi_list.services.retry_engine import RetryEngine
from bangumi_list.services.scheduler import CacheRefreshScheduler


class EnrichmentContext:
    """
    Point d'entree unique du sous-systeme d'enrichissement.

    Example:
        context = container.enrichment_context()
        await context.init()
        items = context.enrich_items(context.catalog.get_on_air())
        await context.shutdown()
    """

    def __init__(
        self,
        catalog: CatalogService,
        cache_store: CacheStore,
        adapters: dict[CacheKind, IFetchAdapter],
        retry_engine: RetryEngine,
        orchestrator: RefreshOrchestrator,
        view: EnrichmentView,
        scheduler: CacheRefreshScheduler,
    ) -> None:
        self.catalog = catalog
        self.cache_store = cache_store
        self.adapters = adapters
        self.retry_engine = retry_engine
        self.orchestrator = orchestrator
        self.view = view
        self.scheduler = scheduler
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self, start_scheduler: bool = True) -> None:
        """
        Charge le cache persiste et le catalogue, puis demarre le scheduler.

        Args:
            start_scheduler: False pour un usage ponctuel (CLI) sans jobs
        """
        if self._initialized:
            return
        self.cache_store.load()
        await self.catalog.update(force=False)
        if start_scheduler:
            self.scheduler.start()
        self._initialized = True

    async def shutdown(self) -> None:
        """Arrete jobs et minuteurs, attend les taches puis sauvegarde le cache."""
        self.scheduler.shutdown()
        await self.retry_engine.shutdown()
        await self.orchestrator.wait_background()
        await self.cache_store.flush()
        for adapter in self.adapters.values():
            try:
                await adapter.close()
            except Exception:
                logger.exception(f"Fermeture de l'adaptateur {adapter.kind.value} en echec")
        self._initialized = False

    # ------------------------------------------------------------------
    # Rafraichissement
    # ------------------------------------------------------------------

    @property
    def is_refreshing_cache(self) -> bool:
        return self.orchestrator.is_refreshing

    async def refresh_working_set(self) -> Optional[RefreshStats]:
        return await self.orchestrator.refresh_working_set()

    async def refresh_one(self, item: BangumiItem) -> RefreshStats:
        return await self.orchestrator.refresh_one(item)

    def get_failed_items_status(self) -> dict[str, Any]:
        return self.retry_engine.get_failed_items_status()

    # ------------------------------------------------------------------
    # Lecture
    # ------------------------------------------------------------------

    def enrich_items(self, items: Iterable[BangumiItem]) -> list[BangumiItem]:
        return self.view.enrich_items(items)

    def enrich_item(self, item: BangumiItem) -> BangumiItem:
        return self.view.enrich_item(item)

    def get_item(self, item_id: str) -> Optional[BangumiItem]:
        """
        Entree enrichie depuis le cache, avec rafraichissement en arriere-plan.

        La reponse n'attend pas le rafraichissement : elle reflete le cache
        au moment de la lecture.
        """
        item = self.catalog.get_item(item_id)
        if item is None:
            return None
        self.orchestrator.request_refresh(item)
        return self.view.enrich_item(item)

    def get_item_cache_status(self, item: BangumiItem) -> dict[str, Any]:
        return self.view.get_item_cache_status(item)

    def get_recent_seasons_cache_status(self, now: Optional[datetime] = None) -> dict[str, Any]:
        now = now or self.catalog.now()
        return self.view.get_recent_seasons_cache_status(
            self.catalog.get_recent_season_items(now),
            self.catalog.current_season(now),
            self.catalog.previous_season(now),
            tz=now.tzinfo,
        )
