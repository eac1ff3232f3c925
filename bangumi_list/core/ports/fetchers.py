"""
Interfaces ports pour les fournisseurs de donnees d'enrichissement.

Chaque fournisseur (bangumi.tv, bilibili, Mikan) est expose par un
adaptateur implementant IFetchAdapter. La convention est unique pour les
trois adaptateurs :
- une valeur : donnee trouvee
- None : le fournisseur confirme qu'il n'a rien (mis en cache comme EMPTY)
- exception FetchError : echec transitoire, a retenter plus tard
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from bangumi_list.core.value_objects.cache import CacheKind

T = TypeVar("T")


class FetchError(Exception):
    """
    Echec transitoire d'un fournisseur (reseau, timeout, 5xx, format invalide).

    Attributes:
        provider: Identifiant du fournisseur ("bangumi", "bilibili", "mikan")
        key: Cle du fournisseur concernee
    """

    def __init__(self, provider: str, key: str, message: str) -> None:
        self.provider = provider
        self.key = key
        super().__init__(f"[{provider}] {key}: {message}")


class IFetchAdapter(ABC, Generic[T]):
    """
    Interface d'un adaptateur de fournisseur.

    Seuls les adaptateurs parlent au reseau. L'operation fetch est
    idempotente : deux appels concurrents pour la meme cle sont autorises.
    """

    @property
    @abstractmethod
    def kind(self) -> CacheKind:
        """Type de cache alimente par cet adaptateur."""
        ...

    @abstractmethod
    async def fetch(self, provider_key: str) -> Optional[T]:
        """
        Recupere la donnee d'enrichissement pour une cle fournisseur.

        Args :
            provider_key : Identifiant externe (subject id, media id, mikan id)

        Retourne :
            La valeur trouvee, ou None si le fournisseur confirme l'absence

        Raises :
            FetchError : En cas d'echec transitoire
        """
        ...

    async def close(self) -> None:
        """Libere les ressources reseau (optionnel)."""
        return None
