"""
Tests unitaires pour les commandes CLI.

Tests couvrant:
- update: telechargement du catalogue, echec reseau
- refresh: passe complete, entree unique, entree inconnue, passe deja en cours
- status: tableau de couverture du cache
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from bangumi_list.core.value_objects.cache import CacheKind
from bangumi_list.main import app
from bangumi_list.services.orchestrator import RefreshStats
from tests.fixtures.builders import TTLS, make_item

runner = CliRunner()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_context():
    """Mock le Container pour les tests.

    Patche Container dans helpers.py car c'est la que le decorateur
    @with_context() l'importe et l'instancie.
    """
    with patch("bangumi_list.adapters.cli.helpers.Container") as mock_cls:
        container_instance = MagicMock()
        mock_cls.return_value = container_instance
        context = MagicMock()
        context.init = AsyncMock()
        context.shutdown = AsyncMock()
        context.refresh_working_set = AsyncMock()
        context.refresh_one = AsyncMock()
        context.catalog.update = AsyncMock()
        context.catalog.current_season.return_value = "2024q3"
        context.catalog.previous_season.return_value = "2024q2"
        container_instance.enrichment_context.return_value = context
        yield context


# ============================================================================
# update
# ============================================================================


class TestUpdateCommand:
    def test_update(self, mock_context) -> None:
        mock_context.catalog.items = [make_item()]
        mock_context.catalog.seasons = ["2024q3"]
        mock_context.catalog.version = 1

        result = runner.invoke(app, ["update"])

        assert result.exit_code == 0
        assert "Catalogue a jour" in result.stdout
        mock_context.catalog.update.assert_awaited_once_with(force=True)
        mock_context.init.assert_not_awaited()
        mock_context.shutdown.assert_awaited_once()

    def test_update_no_force(self, mock_context) -> None:
        mock_context.catalog.items = []
        mock_context.catalog.seasons = []

        runner.invoke(app, ["update", "--no-force"])

        mock_context.catalog.update.assert_awaited_once_with(force=False)

    def test_update_network_error(self, mock_context) -> None:
        mock_context.catalog.update.side_effect = httpx.ConnectError("unreachable")

        result = runner.invoke(app, ["update"])

        assert result.exit_code == 1
        assert "Echec" in result.stdout


# ============================================================================
# refresh
# ============================================================================


class TestRefreshCommand:
    def test_refresh_working_set(self, mock_context) -> None:
        mock_context.refresh_working_set.return_value = RefreshStats(
            total=4, fetched=6, empty=2, skipped=3, failed=1
        )

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 0
        assert "4 bangumi traite(s)" in result.stdout
        assert "echec" in result.stdout
        mock_context.init.assert_awaited_once_with(start_scheduler=False)
        mock_context.shutdown.assert_awaited_once()

    def test_refresh_already_running(self, mock_context) -> None:
        mock_context.refresh_working_set.return_value = None

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 0
        assert "deja en cours" in result.stdout

    def test_refresh_single_item(self, mock_context) -> None:
        item = make_item(title="夏季新番")
        mock_context.catalog.get_item.return_value = item
        mock_context.refresh_one.return_value = RefreshStats(total=1, fetched=3)

        result = runner.invoke(app, ["refresh", "--item", "item-1"])

        assert result.exit_code == 0
        mock_context.refresh_one.assert_awaited_once_with(item)
        mock_context.refresh_working_set.assert_not_awaited()

    def test_refresh_unknown_item(self, mock_context) -> None:
        mock_context.catalog.get_item.return_value = None

        result = runner.invoke(app, ["refresh", "-i", "missing"])

        assert result.exit_code == 1
        assert "introuvable" in result.stdout
        mock_context.shutdown.assert_awaited_once()


# ============================================================================
# status
# ============================================================================


class TestStatusCommand:
    def test_status(self, mock_context) -> None:
        mock_context.get_recent_seasons_cache_status.return_value = {
            "currentSeason": "2024q3",
            "previousSeason": "2024q2",
            "totalItems": 2,
            "currentSeasonItems": 1,
            "previousSeasonItems": 1,
            "imageCached": 2,
            "videoCached": 1,
            "feedCached": 0,
        }
        mock_context.cache_store.count.return_value = 10
        mock_context.cache_store.check_batch.return_value = (["425998"], [])
        mock_context.catalog.get_recent_season_items.return_value = [make_item()]
        mock_context.view.provider_keys.return_value = ["425998"]
        mock_context.cache_store.ttl.side_effect = lambda kind: TTLS[kind]
        mock_context.get_failed_items_status.return_value = {"count": 3, "items": []}

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "2024q3" in result.stdout
        assert "Flux RSS" in result.stdout
        assert "168h" in result.stdout
        assert "retry" in result.stdout
        mock_context.cache_store.ttl.assert_any_call(CacheKind.FEED)
        assert mock_context.cache_store.check_batch.call_count == 3
        mock_context.cache_store.check_batch.assert_any_call(CacheKind.IMAGE, ["425998"])
