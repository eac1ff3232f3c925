"""
Business entities representing the broadcast catalog.

Exports:
- BangumiItem: One anime broadcast from bangumi-data
- BangumiSite: Reference to an external site (bangumi, bilibili, mikan...)
- PROVIDER_SITES: Site name providing the key of each cache kind
- embed_link: Outward bilibili player link for a cached PV bvid
"""

from bangumi_list.core.entities.catalog import (
    PROVIDER_SITES,
    BangumiItem,
    BangumiSite,
    embed_link,
    parse_date,
    previous_season_of,
    season_of,
)

__all__ = [
    "BangumiItem",
    "BangumiSite",
    "PROVIDER_SITES",
    "embed_link",
    "parse_date",
    "previous_season_of",
    "season_of",
]
