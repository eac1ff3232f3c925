"""
Catalog service: loads the bangumi-data broadcast catalog and answers queries.

The catalog is the read-only collaborator of the enrichment subsystem. It is
downloaded as a single JSON file (bangumi-data ``dist/data.json``), processed
into an in-memory index and reloaded on demand.
"""

import hashlib
import json
import os
import time
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Optional

import httpx
from loguru import logger

from bangumi_list.core.entities.catalog import (
    BangumiItem,
    BangumiSite,
    parse_date,
    previous_season_of,
    season_of,
)


def generate_item_id(title: str, begin: Optional[datetime]) -> str:
    """Stable item id: md5 of the premiere month (YYYY-MM) followed by the title."""
    month = begin.strftime("%Y-%m") if begin else ""
    return hashlib.md5(f"{month}{title}".encode("utf-8")).hexdigest()


class CatalogService:
    """
    In-memory index of the bangumi-data catalog.

    Attributes:
        seasons: Known season labels (YYYYqQ), most recent first
        season_ids: Item ids per season
        no_end_date_ids: Ids of items without end date (still airing or unknown)
        site_map: siteMeta grouped by site type (info, onair, resource)
        version: Data file mtime in milliseconds (0 until loaded)
    """

    def __init__(
        self,
        data_path: Path,
        data_url: str,
        tz: tzinfo,
        timeout: float = 60.0,
    ) -> None:
        self._data_path = Path(data_path)
        self._data_url = data_url
        self._tz = tz
        self._timeout = timeout
        self.seasons: list[str] = []
        self.season_ids: dict[str, list[str]] = {}
        self.no_end_date_ids: list[str] = []
        self.site_map: dict[str, dict[str, Any]] = {}
        self.version = 0
        self._items: dict[str, BangumiItem] = {}

    @property
    def is_loaded(self) -> bool:
        return bool(self.version)

    @property
    def items(self) -> list[BangumiItem]:
        return list(self._items.values())

    def now(self) -> datetime:
        return datetime.now(self._tz)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def update(self, force: bool = True) -> None:
        """
        Download the catalog file, then reload the index.

        Args:
            force: When False, an existing readable data file is reused
                   instead of downloading a new one.

        Raises:
            httpx.HTTPError: Download failure (the previous file is kept)
        """
        self._data_path.parent.mkdir(parents=True, exist_ok=True)

        if force or not os.access(self._data_path, os.R_OK):
            tmp_path = self._data_path.with_name(f"{self._data_path.name}.{int(time.time() * 1000)}")
            logger.info(f"Downloading catalog from {self._data_url}")
            try:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    async with client.stream("GET", self._data_url) as response:
                        response.raise_for_status()
                        with open(tmp_path, "wb") as f:
                            async for chunk in response.aiter_bytes():
                                f.write(chunk)
                os.replace(tmp_path, self._data_path)
            finally:
                tmp_path.unlink(missing_ok=True)

        self.load()

    def load(self) -> None:
        """Read the data file and rebuild the in-memory index."""
        raw = json.loads(self._data_path.read_text(encoding="utf-8"))
        self.version = int(self._data_path.stat().st_mtime * 1000)
        self._process(raw)
        logger.info(
            f"Catalog loaded: {len(self._items)} items, {len(self.seasons)} seasons "
            f"(version {self.version})"
        )

    def _process(self, raw: dict[str, Any]) -> None:
        seasons: set[str] = set()
        season_ids: dict[str, list[str]] = {}
        no_end_date_ids: list[str] = []
        items: dict[str, BangumiItem] = {}

        for raw_item in raw.get("items") or []:
            item = self._build_item(raw_item)
            season = item.season(self._tz) or ""
            seasons.add(season)
            season_ids.setdefault(season, []).append(item.id)
            if not item.end:
                no_end_date_ids.append(item.id)
            items[item.id] = item

        site_map: dict[str, dict[str, Any]] = {}
        for site_name, site in (raw.get("siteMeta") or {}).items():
            site_map.setdefault(site.get("type", ""), {})[site_name] = site

        self.seasons = sorted((s for s in seasons if s), reverse=True)
        self.season_ids = season_ids
        self.no_end_date_ids = no_end_date_ids
        self.site_map = site_map
        self._items = items

    def _build_item(self, raw: dict[str, Any]) -> BangumiItem:
        title = raw.get("title", "")
        begin = raw.get("begin") or ""
        begin_date = parse_date(begin)
        if begin_date is not None:
            begin_date = begin_date.astimezone(self._tz)

        sites = sorted(
            (
                BangumiSite(
                    site=site.get("site", ""),
                    id=str(site.get("id") or ""),
                    url=site.get("url"),
                    begin=site.get("begin"),
                    broadcast=site.get("broadcast"),
                    comment=site.get("comment"),
                )
                for site in raw.get("sites") or []
            ),
            key=lambda s: s.site,
        )

        return BangumiItem(
            id=generate_item_id(title, begin_date),
            title=title,
            type=raw.get("type", "tv"),
            lang=raw.get("lang", ""),
            official_site=raw.get("officialSite", ""),
            begin=begin,
            end=raw.get("end") or "",
            sites=tuple(sites),
            title_translate=raw.get("titleTranslate") or {},
            broadcast=raw.get("broadcast"),
            comment=raw.get("comment"),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_season(self, now: Optional[datetime] = None) -> str:
        return season_of((now or self.now()).astimezone(self._tz))

    def previous_season(self, now: Optional[datetime] = None) -> str:
        return previous_season_of((now or self.now()).astimezone(self._tz))

    def get_item(self, item_id: str) -> Optional[BangumiItem]:
        return self._items.get(item_id)

    def get_archive(self, season: str) -> list[BangumiItem]:
        """Items whose premiere falls in the given season."""
        return [self._items[i] for i in self.season_ids.get(season, [])]

    def get_on_air(self, now: Optional[datetime] = None) -> list[BangumiItem]:
        """Items without end date whose premiere is already past."""
        now = now or self.now()
        on_air = []
        for item_id in self.no_end_date_ids:
            item = self._items[item_id]
            begin = item.begin_date()
            if begin is not None and begin <= now:
                on_air.append(item)
        return on_air

    def get_recent_season_items(self, now: Optional[datetime] = None) -> list[BangumiItem]:
        """Working set of the refresh: current and previous season items."""
        now = now or self.now()
        recent = {self.current_season(now), self.previous_season(now)}
        return [
            item for item in self._items.values() if item.season(self._tz) in recent
        ]

