"""
Vue d'enrichissement : superpose le cache aux entrees du catalogue.

Lecture seule et synchrone : aucune requete reseau, aucune ecriture. Pour
chaque type de donnee, le champ expose est la valeur en cache si elle est
fraiche et non vide, sinon None. Les entrees du catalogue ne sont jamais
modifiees : la vue produit des copies.
"""

import dataclasses
from typing import Any, Iterable, Optional

from bangumi_list.core.entities.catalog import BangumiItem, embed_link
from bangumi_list.core.value_objects.cache import CacheKind
from bangumi_list.infrastructure.persistence.cache_store import CacheStore


class EnrichmentView:
    """Lecture du cache d'enrichissement pour les reponses de l'API."""

    def __init__(self, cache_store: CacheStore) -> None:
        self._cache_store = cache_store

    def _fresh(self, item: BangumiItem, kind: CacheKind) -> Optional[Any]:
        return self._cache_store.get_fresh_value(kind, item.provider_key(kind))

    def enrich_item(self, item: BangumiItem) -> BangumiItem:
        """Copie de l'entree avec image, lien du PV et flux RSS issus du cache."""
        bvid = self._fresh(item, CacheKind.VIDEO)
        return dataclasses.replace(
            item,
            image=self._fresh(item, CacheKind.IMAGE),
            preview_embed_link=embed_link(bvid) if bvid else None,
            feed_content=self._fresh(item, CacheKind.FEED),
        )

    def enrich_items(self, items: Iterable[BangumiItem]) -> list[BangumiItem]:
        """Version par lot de enrich_item (listes, archives)."""
        return [self.enrich_item(item) for item in items]

    @staticmethod
    def provider_keys(items: Iterable[BangumiItem], kind: CacheKind) -> list[str]:
        """Cles fournisseur d'un type de donnee (entrees sans cle ignorees)."""
        return [key for key in (item.provider_key(kind) for item in items) if key]

    def get_item_cache_status(self, item: BangumiItem) -> dict[str, Any]:
        """
        Etat du cache d'une entree, par type de donnee.

        Returns:
            {"itemId", "title", "image": {...}, "video": {...}, "feed": {...}}
        """
        image = self._fresh(item, CacheKind.IMAGE)
        bvid = self._fresh(item, CacheKind.VIDEO)
        feed = self._fresh(item, CacheKind.FEED)
        return {
            "itemId": item.id,
            "title": item.title,
            "image": {
                "cached": image is not None,
                "url": image,
                "subjectId": item.provider_key(CacheKind.IMAGE),
            },
            "video": {
                "cached": bvid is not None,
                "embedLink": embed_link(bvid) if bvid else None,
                "mediaId": item.provider_key(CacheKind.VIDEO),
            },
            "feed": {
                "cached": feed is not None,
                "content": feed.to_dict() if feed is not None else None,
                "mikanId": item.provider_key(CacheKind.FEED),
            },
        }

    def get_recent_seasons_cache_status(
        self,
        items: Iterable[BangumiItem],
        current_season: str,
        previous_season: str,
        tz=None,
    ) -> dict[str, Any]:
        """
        Couverture du cache pour les saisons courante et precedente.

        Une entree est comptee comme en cache pour un type si son entree
        est fraiche, y compris lorsqu'elle est vide.

        Args:
            items: Entrees des deux saisons
            current_season: Libelle de la saison courante (YYYYqQ)
            previous_season: Libelle de la saison precedente
            tz: Fuseau horaire des saisons
        """
        items = list(items)
        seasons = [item.season(tz) for item in items]
        current_items = seasons.count(current_season)
        previous_items = seasons.count(previous_season)

        counts = {}
        for kind in CacheKind:
            keys = self.provider_keys(items, kind)
            missing, expired = self._cache_store.check_batch(kind, keys)
            counts[kind] = len(keys) - len(missing) - len(expired)

        return {
            "currentSeason": current_season,
            "previousSeason": previous_season,
            "totalItems": len(items),
            "currentSeasonItems": current_items,
            "previousSeasonItems": previous_items,
            "imageCached": counts[CacheKind.IMAGE],
            "videoCached": counts[CacheKind.VIDEO],
            "feedCached": counts[CacheKind.FEED],
        }
