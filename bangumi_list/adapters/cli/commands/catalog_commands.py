"""
Commande CLI de mise a jour du catalogue bangumi-data.
"""

import asyncio
from typing import Annotated

import httpx
import typer

from bangumi_list.adapters.cli.helpers import console, with_context


def update(
    force: Annotated[
        bool,
        typer.Option(
            "--force/--no-force",
            help="Telecharger meme si un fichier catalogue existe deja",
        ),
    ] = True,
) -> None:
    """Telecharge le catalogue bangumi-data et recharge l'index."""
    asyncio.run(_update_async(force))


@with_context(load_catalog=False)
async def _update_async(context, force: bool) -> None:
    """Implementation async de la commande update."""
    catalog = context.catalog
    try:
        with console.status("[cyan]Telechargement du catalogue..."):
            await catalog.update(force=force)
    except (httpx.HTTPError, OSError, ValueError) as e:
        console.print(f"[red]Echec de la mise a jour du catalogue:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Catalogue a jour[/green]: {len(catalog.items)} bangumi, "
        f"{len(catalog.seasons)} saisons (version {catalog.version})"
    )
