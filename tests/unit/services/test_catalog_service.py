"""
Tests pour CatalogService - index du catalogue bangumi-data.

Verifie:
- Les identifiants stables (md5 du mois de premiere diffusion + titre)
- Le decoupage en saisons dans le fuseau configure
- Les requetes archive / onair / working set
- Le telechargement du fichier (respx) et sa reutilisation
"""

import hashlib
import json
from pathlib import Path

import httpx
import pytest
import respx

from bangumi_list.services.catalog import CatalogService, generate_item_id
from tests.fixtures.builders import NOW, SHANGHAI
from tests.fixtures.provider_responses import BANGUMI_DATA

DATA_URL = "https://unpkg.com/bangumi-data@0.3/dist/data.json"


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


@pytest.fixture
def data_path(tmp_path: Path) -> Path:
    path = tmp_path / "data.json"
    path.write_text(json.dumps(BANGUMI_DATA, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def catalog(data_path: Path) -> CatalogService:
    service = CatalogService(data_path, DATA_URL, SHANGHAI)
    service.load()
    return service


class TestGenerateItemId:
    def test_month_and_title(self) -> None:
        assert generate_item_id("夏季新番", NOW) == _md5("2024-08夏季新番")

    def test_without_begin(self) -> None:
        assert generate_item_id("untitled", None) == _md5("untitled")


class TestLoad:
    """Construction de l'index."""

    def test_ids_use_local_premiere_month(self, catalog: CatalogService) -> None:
        item = catalog.get_item(_md5("2024-07夏季新番"))
        assert item is not None
        assert item.title == "夏季新番"

    def test_seasons_most_recent_first(self, catalog: CatalogService) -> None:
        assert catalog.seasons == ["2024q4", "2024q3", "2024q2", "2023q4"]

    def test_sites_sorted_by_name(self, catalog: CatalogService) -> None:
        item = catalog.get_item(_md5("2024-07夏季新番"))
        assert [site.site for site in item.sites] == ["bangumi", "bilibili", "mikan"]
        assert item.site_id("bilibili") == "28339735"

    def test_site_map_grouped_by_type(self, catalog: CatalogService) -> None:
        assert set(catalog.site_map) == {"info", "onair", "resource"}
        assert "mikan" in catalog.site_map["resource"]

    def test_version_and_loaded(self, catalog: CatalogService, data_path: Path) -> None:
        assert catalog.is_loaded
        assert catalog.version == int(data_path.stat().st_mtime * 1000)

    def test_season_computed_in_configured_timezone(self, tmp_path: Path) -> None:
        """30 juin 17:00 UTC est deja le 1er juillet a Shanghai."""
        path = tmp_path / "data.json"
        path.write_text(
            json.dumps({"items": [{"title": "minuit", "begin": "2024-06-30T17:00:00.000Z"}]}),
            encoding="utf-8",
        )
        service = CatalogService(path, DATA_URL, SHANGHAI)
        service.load()

        assert service.seasons == ["2024q3"]
        assert service.get_item(_md5("2024-07minuit")) is not None


class TestQueries:
    """Requetes a la date de reference (15 aout 2024, Shanghai)."""

    def test_current_and_previous_season(self, catalog: CatalogService) -> None:
        assert catalog.current_season(NOW) == "2024q3"
        assert catalog.previous_season(NOW) == "2024q2"

    def test_archive(self, catalog: CatalogService) -> None:
        titles = [item.title for item in catalog.get_archive("2024q2")]
        assert titles == ["春季新番"]
        assert catalog.get_archive("1999q1") == []

    def test_on_air_excludes_ended_and_future(self, catalog: CatalogService) -> None:
        titles = {item.title for item in catalog.get_on_air(NOW)}
        assert titles == {"夏季新番", "长篇连载"}

    def test_recent_season_items(self, catalog: CatalogService) -> None:
        titles = {item.title for item in catalog.get_recent_season_items(NOW)}
        assert titles == {"夏季新番", "春季新番"}

    def test_unknown_item(self, catalog: CatalogService) -> None:
        assert catalog.get_item("missing") is None


class TestUpdate:
    """Telechargement du catalogue."""

    @pytest.mark.asyncio
    async def test_update_without_force_reuses_file(self, data_path: Path) -> None:
        service = CatalogService(data_path, DATA_URL, SHANGHAI)
        with respx.mock:
            route = respx.get(DATA_URL)
            await service.update(force=False)

        assert not route.called
        assert len(service.items) == 4

    @pytest.mark.asyncio
    async def test_update_downloads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "run" / "data.json"
        service = CatalogService(path, DATA_URL, SHANGHAI)
        with respx.mock:
            respx.get(DATA_URL).mock(
                return_value=httpx.Response(
                    200, content=json.dumps(BANGUMI_DATA).encode("utf-8")
                )
            )
            await service.update()

        assert path.exists()
        assert len(service.items) == 4
        assert list(path.parent.iterdir()) == [path]

    @pytest.mark.asyncio
    async def test_failed_download_keeps_previous_file(self, data_path: Path) -> None:
        service = CatalogService(data_path, DATA_URL, SHANGHAI)
        before = data_path.read_bytes()
        with respx.mock:
            respx.get(DATA_URL).mock(return_value=httpx.Response(503))
            with pytest.raises(httpx.HTTPStatusError):
                await service.update(force=True)

        assert data_path.read_bytes() == before
        assert [p.name for p in data_path.parent.iterdir()] == ["data.json"]
