"""
Objets valeur du cache d'enrichissement.

Un cache est partitionne par type de donnee (CacheKind). Chaque entree
memorise la valeur obtenue aupres du fournisseur et l'instant de la
recuperation. La valeur EMPTY signifie "le fournisseur a ete interroge et
n'a rien" : elle est distincte de l'absence d'entree ("jamais interroge").
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class CacheKind(str, Enum):
    """Type de donnee d'enrichissement (un namespace de cache par type).

    Valeurs:
        IMAGE: URL de l'image de couverture (bangumi.tv)
        VIDEO: bvid du PV (bilibili)
        FEED: Flux RSS des releases (mikanani.me)
    """

    IMAGE = "image"
    VIDEO = "video"
    FEED = "feed"


class _EmptyType:
    """Sentinelle EMPTY : resultat vide confirme par le fournisseur."""

    _instance: Optional["_EmptyType"] = None

    def __new__(cls) -> "_EmptyType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "EMPTY"


EMPTY = _EmptyType()


@dataclass(frozen=True)
class FeedEnclosure:
    """Piece jointe d'un item RSS (le fichier .torrent)."""

    url: str = ""
    type: str = ""
    length: str = ""


@dataclass(frozen=True)
class FeedItem:
    """
    Item d'un flux de releases.

    Attributs:
        title: Titre de la release
        description: Description brute
        link: Lien vers la page de la release
        pub_date: Date de publication (telle que fournie par le flux)
        guid: Identifiant unique de l'item (optionnel)
        enclosure: Fichier joint (torrent), optionnel
    """

    title: str = ""
    description: str = ""
    link: str = ""
    pub_date: str = ""
    guid: Optional[str] = None
    enclosure: Optional[FeedEnclosure] = None


@dataclass(frozen=True)
class FeedContent:
    """Flux de releases parse (canal RSS et ses items)."""

    title: str = ""
    description: str = ""
    link: str = ""
    items: tuple[FeedItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialise le flux en dict JSON-compatible."""
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "items": [
                {
                    "title": item.title,
                    "description": item.description,
                    "link": item.link,
                    "pubDate": item.pub_date,
                    "guid": item.guid,
                    "enclosure": (
                        {
                            "url": item.enclosure.url,
                            "type": item.enclosure.type,
                            "length": item.enclosure.length,
                        }
                        if item.enclosure
                        else None
                    ),
                }
                for item in self.items
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedContent":
        """Reconstruit un flux depuis sa forme serialisee."""
        items = []
        for raw in data.get("items") or []:
            enclosure = raw.get("enclosure")
            items.append(
                FeedItem(
                    title=raw.get("title", ""),
                    description=raw.get("description", ""),
                    link=raw.get("link", ""),
                    pub_date=raw.get("pubDate", ""),
                    guid=raw.get("guid"),
                    enclosure=FeedEnclosure(
                        url=enclosure.get("url", ""),
                        type=enclosure.get("type", ""),
                        length=enclosure.get("length", ""),
                    )
                    if enclosure
                    else None,
                )
            )
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            link=data.get("link", ""),
            items=tuple(items),
        )


# Valeur pouvant etre stockee dans une entree de cache
CacheValue = Union[str, FeedContent, _EmptyType]


@dataclass(frozen=True)
class CacheEntry:
    """
    Entree de cache.

    Attributs:
        value: Valeur du fournisseur, ou EMPTY si le fournisseur n'a rien
        fetched_at: Timestamp (secondes epoch) de la recuperation
    """

    value: CacheValue
    fetched_at: float

    @property
    def is_empty(self) -> bool:
        """True si l'entree memorise un resultat vide confirme."""
        return self.value is EMPTY


@dataclass
class FailedItem:
    """
    Tentative de recuperation en echec, en attente de retry.

    Creee par l'orchestrateur lors d'une exception du fournisseur, puis
    possedee exclusivement par le RetryEngine.

    Attributs:
        entity_id: ID de l'entree du catalogue
        kind: Type de donnee en echec
        provider_key: Cle du fournisseur (subject id, media id, mikan id)
        attempt_count: Nombre de retries deja effectues
        last_attempt_at: Timestamp de la derniere tentative
        title: Titre de l'entree (pour les logs)
    """

    entity_id: str
    kind: CacheKind
    provider_key: str
    attempt_count: int = 0
    last_attempt_at: float = 0.0
    title: str = field(default="", compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Forme exposee par le statut des echecs."""
        return {
            "entityId": self.entity_id,
            "kind": self.kind.value,
            "providerKey": self.provider_key,
            "attemptCount": self.attempt_count,
            "lastAttemptAt": self.last_attempt_at,
        }
