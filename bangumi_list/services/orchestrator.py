"""
Orchestrateur du rafraichissement du cache d'enrichissement.

Deux points d'entree :
- refresh_working_set : passe complete sur les bangumi de la saison
  courante et de la precedente, par lots de taille fixe. Une seule passe a
  la fois ; un appel pendant une passe est ignore (pas mis en file).
- refresh_one : rafraichissement immediat d'une seule entree, hors lots et
  sans le verrou de passe. Peut concurrencer une passe complete (le
  dernier ecrivain gagne dans le cache).

Les echecs d'une passe complete sont collectes dans un tampon local qui
remplace en bloc la liste du RetryEngine a la fin de la passe.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from bangumi_list.core.entities.catalog import BangumiItem
from bangumi_list.core.ports.fetchers import IFetchAdapter
from bangumi_list.core.value_objects.cache import CacheKind, FailedItem
from bangumi_list.infrastructure.persistence.cache_store import CacheStore
from bangumi_list.services.catalog import CatalogService
from bangumi_list.services.retry_engine import RetryEngine

MIN_CHUNK_SIZE = 2
MAX_CHUNK_SIZE = 5


@dataclass
class RefreshStats:
    """Statistiques d'une passe de rafraichissement."""

    total: int = 0
    fetched: int = 0
    empty: int = 0
    skipped: int = 0
    failed: int = 0


class RefreshOrchestrator:
    """
    Decide quoi recuperer, quand, et avec quelle concurrence.

    Example:
        orchestrator = RefreshOrchestrator(catalog, store, adapters, engine)
        stats = await orchestrator.refresh_working_set()
    """

    def __init__(
        self,
        catalog: CatalogService,
        cache_store: CacheStore,
        adapters: dict[CacheKind, IFetchAdapter],
        retry_engine: RetryEngine,
        chunk_size: int = 2,
        chunk_delay: float = 2.0,
    ) -> None:
        """
        Args:
            catalog: Source des entrees a rafraichir
            cache_store: Cache a alimenter
            adapters: Adaptateur par type de donnee
            retry_engine: Destinataire des echecs de chaque passe
            chunk_size: Nombre d'entrees traitees simultanement (2 a 5)
            chunk_delay: Pause entre deux lots (secondes)
        """
        self._catalog = catalog
        self._cache_store = cache_store
        self._adapters = adapters
        self._retry_engine = retry_engine
        self._chunk_size = min(max(chunk_size, MIN_CHUNK_SIZE), MAX_CHUNK_SIZE)
        self._chunk_delay = chunk_delay
        self._is_refreshing = False
        self._in_flight: set[str] = set()
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    async def refresh_working_set(self) -> Optional[RefreshStats]:
        """
        Rafraichit le cache des bangumi de la saison courante et precedente.

        Returns:
            Statistiques de la passe, ou None si une passe etait deja en cours
        """
        if self._is_refreshing:
            logger.info("[Cache] Rafraichissement deja en cours, appel ignore")
            return None
        self._is_refreshing = True

        try:
            items = self._catalog.get_recent_season_items()
            stats = RefreshStats(total=len(items))
            failures: list[FailedItem] = []
            logger.info(
                f"[Cache] Debut du rafraichissement de {len(items)} bangumi "
                f"(lots de {self._chunk_size})"
            )

            for start in range(0, len(items), self._chunk_size):
                if start > 0 and self._chunk_delay > 0:
                    await asyncio.sleep(self._chunk_delay)
                chunk = items[start:start + self._chunk_size]
                await asyncio.gather(
                    *(self._refresh_item(item, stats, failures) for item in chunk)
                )
                logger.debug(
                    f"[Cache] Progression: {min(start + self._chunk_size, len(items))}/{len(items)}"
                )

            self._retry_engine.replace(failures)
            if failures:
                logger.warning(f"[Cache] {len(failures)} recuperations en echec, retry planifie")
                self._retry_engine.schedule(reset=True)

            logger.info(
                f"[Cache] Rafraichissement termine: {stats.fetched} recuperes, "
                f"{stats.empty} vides, {stats.skipped} a jour, {stats.failed} en echec"
            )
            return stats
        finally:
            self._is_refreshing = False

    async def refresh_one(self, item: BangumiItem, force: bool = True) -> RefreshStats:
        """
        Rafraichit immediatement les trois donnees d'une entree.

        Args:
            item: Entree du catalogue
            force: Si False, les entrees encore fraiches ne sont pas recuperees

        Returns:
            Statistiques de l'operation (les echecs sont journalises, pas retentes)
        """
        stats = RefreshStats(total=1)
        await self._refresh_item(item, stats, failures=None, force=force)
        return stats

    def request_refresh(self, item: BangumiItem) -> bool:
        """
        Lance en arriere-plan un refresh_one non force d'une entree.

        Returns:
            False si un rafraichissement de cette entree est deja en cours
        """
        if item.id in self._in_flight:
            return False
        self._in_flight.add(item.id)

        async def _run() -> None:
            try:
                await self.refresh_one(item, force=False)
            except Exception:
                logger.exception(f"[Cache] Rafraichissement de {item.title} ({item.id}) en echec")
            finally:
                self._in_flight.discard(item.id)

        task = asyncio.get_running_loop().create_task(_run())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return True

    async def wait_background(self) -> None:
        """Attend la fin des rafraichissements lances en arriere-plan."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _refresh_item(
        self,
        item: BangumiItem,
        stats: RefreshStats,
        failures: Optional[list[FailedItem]],
        force: bool = False,
    ) -> None:
        await asyncio.gather(
            *(
                self._refresh_kind(item, kind, stats, failures, force)
                for kind in CacheKind
                if kind in self._adapters
            )
        )

    async def _refresh_kind(
        self,
        item: BangumiItem,
        kind: CacheKind,
        stats: RefreshStats,
        failures: Optional[list[FailedItem]],
        force: bool,
    ) -> None:
        """Decision et recuperation d'un type de donnee pour une entree."""
        key = item.provider_key(kind)
        if not key:
            return

        entry = self._cache_store.get(kind, key)
        if not force and self._cache_store.should_skip_refresh(kind, entry):
            stats.skipped += 1
            return

        try:
            value = await self._adapters[kind].fetch(key)
        except Exception as e:
            stats.failed += 1
            logger.warning(f"[Cache] Echec {kind.value} pour {item.title} ({item.id}, {key}): {e}")
            if failures is not None:
                failures.append(
                    FailedItem(entity_id=item.id, kind=kind, provider_key=key, title=item.title)
                )
            return

        self._cache_store.set(kind, key, value)
        if value is None:
            stats.empty += 1
            logger.debug(f"[Cache] Aucune donnee {kind.value} pour {item.title} ({key})")
        else:
            stats.fetched += 1
