"""
Commandes CLI du cache d'enrichissement (rafraichissement, etat).
"""

import asyncio
from typing import Annotated, Optional

import typer
from rich.table import Table

from bangumi_list.adapters.cli.helpers import console, suppress_loguru, with_context
from bangumi_list.core.value_objects.cache import CacheKind


def refresh(
    item_id: Annotated[
        Optional[str],
        typer.Option(
            "--item", "-i",
            help="ID d'un bangumi a rafraichir seul (sinon saisons courante et precedente)",
        ),
    ] = None,
) -> None:
    """Rafraichit le cache des images, PV et flux RSS."""
    asyncio.run(_refresh_async(item_id))


@with_context()
async def _refresh_async(context, item_id: Optional[str]) -> None:
    """Implementation async de la commande refresh."""
    if item_id:
        item = context.catalog.get_item(item_id)
        if item is None:
            console.print(f"[red]Bangumi introuvable:[/red] {item_id}")
            raise typer.Exit(code=1)
        console.print(f"[bold cyan]Rafraichissement[/bold cyan]: {item.title}")
        with suppress_loguru():
            stats = await context.refresh_one(item)
    else:
        catalog = context.catalog
        console.print(
            f"[bold cyan]Rafraichissement du cache[/bold cyan]: saisons "
            f"{catalog.current_season()} et {catalog.previous_season()}"
        )
        with suppress_loguru():
            with console.status("[cyan]Recuperation en cours..."):
                stats = await context.refresh_working_set()

    if stats is None:
        console.print("[yellow]Un rafraichissement est deja en cours.[/yellow]")
        return

    console.print("\n[bold]Resume:[/bold]")
    console.print(f"  {stats.total} bangumi traite(s)")
    console.print(f"  [green]{stats.fetched}[/green] recupere(s)")
    if stats.empty > 0:
        console.print(f"  [dim]{stats.empty}[/dim] sans donnee")
    if stats.skipped > 0:
        console.print(f"  [yellow]{stats.skipped}[/yellow] deja a jour")
    if stats.failed > 0:
        console.print(f"  [red]{stats.failed}[/red] echec(s)")


def status() -> None:
    """Affiche la couverture du cache pour les saisons courante et precedente."""
    asyncio.run(_status_async())


@with_context()
async def _status_async(context) -> None:
    """Implementation async de la commande status."""
    report = context.get_recent_seasons_cache_status()
    store = context.cache_store
    items = context.catalog.get_recent_season_items()

    table = Table(title="Cache d'enrichissement")
    table.add_column("Type", style="cyan")
    table.add_column("En cache", justify="right", style="green")
    table.add_column("Manquants", justify="right", style="yellow")
    table.add_column("Expires", justify="right", style="red")
    table.add_column("Entrees totales", justify="right")
    table.add_column("TTL", justify="right", style="dim")

    labels = {
        CacheKind.IMAGE: ("Images", report["imageCached"]),
        CacheKind.VIDEO: ("PV", report["videoCached"]),
        CacheKind.FEED: ("Flux RSS", report["feedCached"]),
    }
    for kind, (label, cached) in labels.items():
        missing, expired = store.check_batch(kind, context.view.provider_keys(items, kind))
        table.add_row(
            label,
            str(cached),
            str(len(missing)),
            str(len(expired)),
            str(store.count(kind)),
            f"{store.ttl(kind) / 3600:g}h",
        )

    console.print(
        f"Saison courante [bold]{report['currentSeason']}[/bold]: "
        f"{report['currentSeasonItems']} bangumi, saison precedente "
        f"[bold]{report['previousSeason']}[/bold]: {report['previousSeasonItems']} bangumi"
    )
    console.print(table)

    failed = context.get_failed_items_status()
    if failed["count"]:
        console.print(f"[red]{failed['count']}[/red] recuperation(s) en attente de retry")
