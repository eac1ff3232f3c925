"""
Moteur de retry des recuperations en echec.

Le RetryEngine possede seul la liste des FailedItem. L'orchestrateur la
remplace en bloc a la fin de chaque passe complete ; le moteur la
retraite ensuite periodiquement :

- un seul minuteur par instance (intervalle fixe, 60s par defaut)
- a chaque declenchement, chaque item est retente une fois, en sequence
- un item resolu (valeur ou vide confirme) est retire
- un item toujours en echec est conserve avec attempt_count + 1, sauf
  s'il avait deja atteint le plafond : il est alors abandonne (journalise)
- le minuteur n'est rearme qu'a la fin d'une passe, si la liste n'est pas vide
"""

import asyncio
import time
from typing import Callable, Optional

from loguru import logger

from bangumi_list.core.ports.fetchers import IFetchAdapter
from bangumi_list.core.value_objects.cache import CacheKind, FailedItem
from bangumi_list.infrastructure.persistence.cache_store import CacheStore


class RetryEngine:
    """
    Retraite periodiquement les recuperations en echec.

    Example:
        engine = RetryEngine(adapters, cache_store, interval=60)
        engine.replace(failed_items)
        engine.schedule()
        ...
        await engine.shutdown()
    """

    def __init__(
        self,
        adapters: dict[CacheKind, IFetchAdapter],
        cache_store: CacheStore,
        interval: float = 60.0,
        max_attempts: int = 5,
        item_delay: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            adapters: Adaptateur par type de donnee
            cache_store: Cache ou enregistrer les recuperations reussies
            interval: Delai entre deux passes de retry (secondes)
            max_attempts: Plafond de retries avant abandon
            item_delay: Pause entre deux items d'une meme passe (secondes)
            clock: Source du temps courant
        """
        self._adapters = adapters
        self._cache_store = cache_store
        self._interval = interval
        self._max_attempts = max_attempts
        self._item_delay = item_delay
        self._clock = clock
        self._items: list[FailedItem] = []
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pass_task: Optional[asyncio.Task] = None

    @property
    def items(self) -> list[FailedItem]:
        return list(self._items)

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None

    @property
    def is_running(self) -> bool:
        return self._pass_task is not None and not self._pass_task.done()

    def replace(self, items: list[FailedItem]) -> None:
        """Remplace la liste des echecs (fin de passe de l'orchestrateur)."""
        self._items = list(items)
        self._generation += 1

    def schedule(self, reset: bool = False) -> None:
        """
        Arme le minuteur si la liste n'est pas vide.

        Sans effet si un minuteur est deja arme ou si une passe est en
        cours (elle rearmera elle-meme a sa fin).

        Args:
            reset: Annule le minuteur arme et repart d'un intervalle complet
                   (remise d'une nouvelle liste par l'orchestrateur)
        """
        if reset and self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._items or self._timer is not None or self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._interval, self._on_timer)
        logger.info(
            f"[Retry] Prochain retry de {len(self._items)} items dans {self._interval:.0f}s"
        )

    def _on_timer(self) -> None:
        self._timer = None
        self._pass_task = asyncio.get_running_loop().create_task(self._run_and_reschedule())

    async def _run_and_reschedule(self) -> None:
        try:
            await self.run_pass()
        except Exception:
            logger.exception("[Retry] Passe de retry interrompue")
        finally:
            self._pass_task = None
        self.schedule()

    async def run_pass(self) -> tuple[int, int]:
        """
        Retente chaque item de la liste une fois.

        Returns:
            (nombre d'items resolus, nombre d'items toujours en echec)
        """
        snapshot = list(self._items)
        generation = self._generation
        if not snapshot:
            logger.debug("[Retry] Aucun item a retenter")
            return 0, 0

        logger.info(f"[Retry] Retry de {len(snapshot)} items en echec...")
        still_failed: list[FailedItem] = []
        resolved = 0

        for i, item in enumerate(snapshot):
            if i > 0 and self._item_delay > 0:
                await asyncio.sleep(self._item_delay)

            if await self._retry_item(item):
                resolved += 1
                continue

            if item.attempt_count >= self._max_attempts:
                logger.warning(
                    f"[Retry] Abandon {item.kind.value} pour {item.entity_id} "
                    f"({item.provider_key}) apres {item.attempt_count} tentatives"
                )
                continue
            item.attempt_count += 1
            item.last_attempt_at = self._clock()
            still_failed.append(item)

        if generation == self._generation:
            self._items = still_failed
        else:
            # Liste remplacee pendant la passe : la nouvelle liste prevaut
            known = {(f.entity_id, f.kind, f.provider_key) for f in self._items}
            self._items.extend(
                f for f in still_failed if (f.entity_id, f.kind, f.provider_key) not in known
            )

        logger.info(
            f"[Retry] Passe terminee: {resolved} reussis, {len(still_failed)} toujours en echec"
        )
        return resolved, len(still_failed)

    async def _retry_item(self, item: FailedItem) -> bool:
        """Une tentative pour un item. True si le cache a ete mis a jour."""
        adapter = self._adapters[item.kind]
        try:
            value = await adapter.fetch(item.provider_key)
        except Exception as e:
            logger.warning(
                f"[Retry] Echec {item.kind.value} pour {item.title or item.entity_id} "
                f"({item.provider_key}): {e}"
            )
            return False
        self._cache_store.set(item.kind, item.provider_key, value)
        logger.info(
            f"[Retry] Succes {item.kind.value} pour {item.entity_id} ({item.provider_key})"
        )
        return True

    def get_failed_items_status(self) -> dict:
        """Nombre et detail des items en attente de retry."""
        return {"count": len(self._items), "items": [item.to_dict() for item in self._items]}

    async def shutdown(self) -> None:
        """Desarme le minuteur et annule la passe en cours."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("[Retry] Minuteur de retry annule")
        task = self._pass_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._pass_task = None
