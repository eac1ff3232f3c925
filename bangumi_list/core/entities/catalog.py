"""
Catalog entities.

Entities representing the bangumi-data broadcast catalog. They are
immutable for the duration of a refresh cycle: the cache subsystem never
mutates them, it produces enriched copies for API responses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from bangumi_list.core.value_objects.cache import CacheKind, FeedContent

# Site bangumi-data fournissant la cle de chaque type de cache
PROVIDER_SITES: dict[CacheKind, str] = {
    CacheKind.IMAGE: "bangumi",
    CacheKind.VIDEO: "bilibili",
    CacheKind.FEED: "mikan",
}

# Lecteur integrable bilibili (le cache video stocke le bvid du PV)
EMBED_URL_TEMPLATE = (
    "https://player.bilibili.com/player.html?isOutside=true&bvid={bvid}&high_quality=1"
)


def embed_link(bvid: str) -> str:
    """Outward embed player link for a PV bvid."""
    return EMBED_URL_TEMPLATE.format(bvid=bvid)


@dataclass(frozen=True)
class BangumiSite:
    """
    Reference to an external site for a catalog item.

    Attributes:
        site: Site name as declared in bangumi-data siteMeta (bangumi, bilibili, mikan...)
        id: External identifier on that site
        url: Optional explicit URL
        begin: Optional broadcast start on that site
        broadcast: Optional broadcast period (ISO 8601 repeating interval)
        comment: Optional free comment
    """

    site: str
    id: str = ""
    url: Optional[str] = None
    begin: Optional[str] = None
    broadcast: Optional[str] = None
    comment: Optional[str] = None


@dataclass(frozen=True)
class BangumiItem:
    """
    Catalog item (one anime broadcast).

    The enrichment fields (image, preview_embed_link, feed_content) are always
    None on catalog entities; only the copies produced by the enrichment view
    carry values.

    Attributes:
        id: Stable identifier (md5 of premiere month + title)
        title: Original title
        type: tv, web, movie or ova
        lang: Original language
        official_site: Official website URL
        begin: Premiere date (ISO 8601)
        end: End date (ISO 8601), empty while on air
        sites: External site references
        title_translate: Translated titles by language
        broadcast: Broadcast period
        comment: Free comment
    """

    id: str
    title: str
    type: str = "tv"
    lang: str = ""
    official_site: str = ""
    begin: str = ""
    end: str = ""
    sites: tuple[BangumiSite, ...] = ()
    title_translate: dict[str, list[str]] = field(default_factory=dict, compare=False)
    broadcast: Optional[str] = None
    comment: Optional[str] = None
    image: Optional[str] = None
    preview_embed_link: Optional[str] = None
    feed_content: Optional[FeedContent] = None

    def site_id(self, site_name: str) -> Optional[str]:
        """Return the external id for a site name, or None when absent/empty."""
        for site in self.sites:
            if site.site == site_name:
                return site.id or None
        return None

    def provider_key(self, kind: CacheKind) -> Optional[str]:
        """Return the cache key of this item for a cache kind."""
        return self.site_id(PROVIDER_SITES[kind])

    def begin_date(self) -> Optional[datetime]:
        """Parse the premiere date, None when missing or malformed."""
        return parse_date(self.begin)

    def season(self, tz: Optional[tzinfo] = None) -> Optional[str]:
        """Broadcast season label (YYYYqQ) of the premiere date."""
        begin = self.begin_date()
        if begin is None:
            return None
        if tz is not None:
            begin = begin.astimezone(tz)
        return season_of(begin)

    def to_dict(self) -> dict[str, Any]:
        """JSON shape used by the HTTP layer (bangumi-data field names)."""
        return {
            "id": self.id,
            "title": self.title,
            "titleTranslate": self.title_translate,
            "type": self.type,
            "lang": self.lang,
            "officialSite": self.official_site,
            "begin": self.begin,
            "broadcast": self.broadcast,
            "end": self.end,
            "comment": self.comment,
            "sites": [
                {k: v for k, v in vars(site).items() if v is not None}
                for site in self.sites
            ],
            "image": self.image,
            "previewEmbedLink": self.preview_embed_link,
            "rssContent": self.feed_content.to_dict() if self.feed_content else None,
        }


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 date from bangumi-data (naive dates are taken as UTC)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def season_of(moment: datetime) -> str:
    """Quarter bucket of a date, formatted YYYYqQ (ex: 2024q3)."""
    quarter = (moment.month - 1) // 3 + 1
    return f"{moment.year}q{quarter}"


def previous_season_of(moment: datetime) -> str:
    """Season label three months before the given date."""
    year, month = moment.year, moment.month - 3
    if month <= 0:
        month += 12
        year -= 1
    quarter = (month - 1) // 3 + 1
    return f"{year}q{quarter}"
