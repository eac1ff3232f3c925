"""
Fixtures pytest partagees pour les tests bangumi-list.

Ce module contient les fixtures communes utilisees dans les tests:
- Horloge controlable pour les TTL et les timestamps du cache
- CacheStore dans un repertoire temporaire
- Mocks des adaptateurs fournisseurs (IFetchAdapter) et du catalogue
- Settings de test avec chemins temporaires
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from bangumi_list.config import Settings
from bangumi_list.core.value_objects.cache import CacheKind
from bangumi_list.infrastructure.persistence.cache_store import CacheStore
from bangumi_list.services.catalog import CatalogService
from tests.fixtures.builders import TTLS, FakeClock, make_adapter


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(tmp_path: Path, clock: FakeClock) -> CacheStore:
    """CacheStore vide dans un repertoire temporaire, avec horloge manuelle."""
    return CacheStore(tmp_path / "cache", TTLS, clock=clock)


@pytest.fixture
def adapters() -> dict[CacheKind, AsyncMock]:
    """
    Un adaptateur mocke par type de donnee.

    Par defaut : une image, un bvid, et aucun flux (vide confirme).
    """
    return {
        CacheKind.IMAGE: make_adapter(CacheKind.IMAGE, "https://lain.bgm.tv/pic/cover/l/a.jpg"),
        CacheKind.VIDEO: make_adapter(CacheKind.VIDEO, "BV1xx411c7mD"),
        CacheKind.FEED: make_adapter(CacheKind.FEED, None),
    }


@pytest.fixture
def mock_catalog() -> MagicMock:
    """Mock du CatalogService (working set vide par defaut)."""
    catalog = MagicMock(spec=CatalogService)
    catalog.get_recent_season_items.return_value = []
    catalog.current_season.return_value = "2024q3"
    catalog.previous_season.return_value = "2024q2"
    return catalog


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings de test avec chemins temporaires et delais nuls."""
    return Settings(
        data_dir=tmp_path / "run",
        log_file=tmp_path / "test.log",
        refresh_chunk_delay=0,
        retry_item_delay=0,
        startup_refresh_delay=0,
        feed_base_delay=0,
    )
