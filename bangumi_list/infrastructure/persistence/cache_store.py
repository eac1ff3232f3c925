"""
Cache persistant des donnees d'enrichissement.

Un namespace par type de donnee (image, video, feed), chacun persiste dans
un fichier JSON du repertoire de donnees. Les lectures se font en memoire,
chaque ecriture declenche une sauvegarde asynchrone du namespace entier
(best effort : une erreur d'ecriture est journalisee, jamais propagee).

Au chargement, un fichier dont la date de modification depasse le TTL de
son namespace est supprime en bloc, meme si certaines entrees etaient
recentes. L'expiration fine se fait ensuite entree par entree (is_fresh).
"""

import asyncio
import json
import os
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from bangumi_list.core.value_objects.cache import (
    EMPTY,
    CacheEntry,
    CacheKind,
    CacheValue,
    FeedContent,
)

_FILENAMES = {
    CacheKind.IMAGE: "image-cache.json",
    CacheKind.VIDEO: "video-cache.json",
    CacheKind.FEED: "feed-cache.json",
}


def _encode_entry(kind: CacheKind, entry: CacheEntry) -> dict[str, Any]:
    if entry.is_empty:
        value = None
    elif kind is CacheKind.FEED:
        value = entry.value.to_dict()
    else:
        value = entry.value
    return {"value": value, "isEmpty": entry.is_empty, "timestamp": entry.fetched_at}


def _decode_entry(kind: CacheKind, raw: dict[str, Any]) -> CacheEntry:
    fetched_at = float(raw["timestamp"])
    if raw.get("isEmpty") or raw.get("value") is None:
        return CacheEntry(value=EMPTY, fetched_at=fetched_at)
    if kind is CacheKind.FEED:
        return CacheEntry(value=FeedContent.from_dict(raw["value"]), fetched_at=fetched_at)
    return CacheEntry(value=str(raw["value"]), fetched_at=fetched_at)


class CacheStore:
    """
    Stockage cle/valeur avec TTL, partitionne par CacheKind.

    L'absence d'entree signifie "jamais interroge" ; une entree EMPTY
    signifie "le fournisseur a confirme qu'il n'a rien".

    Example:
        store = CacheStore(Path(".run"), {CacheKind.IMAGE: 7 * 86400, ...})
        store.load()
        store.set(CacheKind.IMAGE, "425998", "https://lain.bgm.tv/pic/...")
        entry = store.get(CacheKind.IMAGE, "425998")
        await store.flush()
    """

    def __init__(
        self,
        cache_dir: Path,
        ttls: dict[CacheKind, float],
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            cache_dir: Repertoire des fichiers de cache (cree si inexistant)
            ttls: Duree de vie en secondes par type de donnee
            clock: Source du temps courant (secondes epoch)
        """
        self._cache_dir = Path(cache_dir)
        self._ttls = dict(ttls)
        self._clock = clock
        self._entries: dict[CacheKind, dict[str, CacheEntry]] = {kind: {} for kind in CacheKind}
        self._locks: dict[CacheKind, asyncio.Lock] = {}
        self._scheduled: set[CacheKind] = set()
        self._pending: set[asyncio.Task] = set()

    def path_for(self, kind: CacheKind) -> Path:
        """Chemin du fichier de persistance d'un namespace."""
        return self._cache_dir / _FILENAMES[kind]

    def ttl(self, kind: CacheKind) -> float:
        return self._ttls[kind]

    # ------------------------------------------------------------------
    # Chargement
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Charge les trois namespaces depuis le disque.

        Un fichier plus vieux que le TTL de son namespace est supprime et
        le namespace demarre vide. Un fichier illisible est ignore.
        """
        now = self._clock()
        for kind in CacheKind:
            path = self.path_for(kind)
            self._entries[kind] = {}
            if not path.exists():
                continue

            age_seconds = now - path.stat().st_mtime
            if age_seconds > self._ttls[kind]:
                logger.info(
                    f"[Cache] Fichier {path.name} expire ({age_seconds / 3600:.1f}h), suppression"
                )
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning(f"[Cache] Suppression de {path.name} impossible: {e}")
                continue

            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"[Cache] Lecture de {path.name} impossible: {e}")
                continue

            entries = self._entries[kind]
            for key, raw in data.items():
                try:
                    entries[key] = _decode_entry(kind, raw)
                except (KeyError, TypeError, ValueError, AttributeError):
                    logger.debug(f"[Cache] Entree {kind.value}:{key} invalide, ignoree")
            logger.info(f"[Cache] {len(entries)} entrees {kind.value} chargees")

    # ------------------------------------------------------------------
    # Acces
    # ------------------------------------------------------------------

    def get(self, kind: CacheKind, key: str) -> Optional[CacheEntry]:
        """Entree d'une cle, ou None si la cle n'a jamais ete interrogee."""
        return self._entries[kind].get(key)

    def set(self, kind: CacheKind, key: str, value: Optional[CacheValue]) -> CacheEntry:
        """
        Enregistre le resultat d'une recuperation.

        None est normalise en EMPTY. La sauvegarde du namespace est
        planifiee en arriere-plan.
        """
        entry = CacheEntry(value=EMPTY if value is None else value, fetched_at=self._clock())
        self._entries[kind][key] = entry
        self._schedule_persist(kind)
        return entry

    def is_fresh(self, entry: CacheEntry, kind: CacheKind) -> bool:
        """True si l'entree n'a pas depasse le TTL de son namespace."""
        return entry.fetched_at + self._ttls[kind] > self._clock()

    def should_skip_refresh(self, kind: CacheKind, entry: Optional[CacheEntry]) -> bool:
        """
        True si une recuperation est inutile pour cette entree.

        Une entree fraiche est conservee meme si elle est EMPTY : un
        fournisseur qui n'a rien n'est pas reinterroge avant expiration.
        """
        return entry is not None and self.is_fresh(entry, kind)

    def get_fresh_value(self, kind: CacheKind, key: Optional[str]) -> Optional[CacheValue]:
        """Valeur exploitable d'une cle : fraiche et non EMPTY, sinon None."""
        if not key:
            return None
        entry = self.get(kind, key)
        if entry is None or entry.is_empty or not self.is_fresh(entry, kind):
            return None
        return entry.value

    def check_batch(self, kind: CacheKind, keys: Iterable[str]) -> tuple[list[str], list[str]]:
        """
        Classe des cles par etat de cache.

        Returns:
            (cles jamais interrogees, cles dont l'entree a expire)
        """
        missing: list[str] = []
        expired: list[str] = []
        for key in keys:
            entry = self.get(kind, key)
            if entry is None:
                missing.append(key)
            elif not self.is_fresh(entry, kind):
                expired.append(key)
        return missing, expired

    def count(self, kind: CacheKind) -> int:
        return len(self._entries[kind])

    # ------------------------------------------------------------------
    # Persistance
    # ------------------------------------------------------------------

    def _schedule_persist(self, kind: CacheKind) -> None:
        """Planifie la sauvegarde d'un namespace (une seule en attente par namespace)."""
        if kind in self._scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write_namespace(kind, self._snapshot(kind))
            return
        self._scheduled.add(kind)
        task = loop.create_task(self._persist(kind))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _snapshot(self, kind: CacheKind) -> dict[str, Any]:
        return {key: _encode_entry(kind, entry) for key, entry in self._entries[kind].items()}

    async def _persist(self, kind: CacheKind) -> None:
        lock = self._locks.setdefault(kind, asyncio.Lock())
        async with lock:
            self._scheduled.discard(kind)
            snapshot = self._snapshot(kind)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._write_namespace, kind, snapshot)

    def _write_namespace(self, kind: CacheKind, snapshot: dict[str, Any]) -> None:
        """Ecrit un namespace (fichier temporaire puis renommage). N'echoue jamais."""
        path = self.path_for(kind)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except Exception:
            logger.exception(f"[Cache] Echec de la sauvegarde du cache {kind.value}")

    async def flush(self) -> None:
        """Attend la fin des sauvegardes en cours."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
