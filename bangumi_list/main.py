"""
Point d'entrée CLI de bangumi-list.

Configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from . import __version__
from .adapters.cli.commands import refresh, status, update
from .config import Settings
from .container import Container
from .logging_config import configure_logging

app = typer.Typer(
    name="bangumi-list",
    help="Catalogue anime enrichi (images, PV, flux RSS)",
)
container = Container()


# Commandes du catalogue et du cache
app.command()(update)
app.command()(refresh)
app.command()(status)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration bangumi-list")
    typer.echo(f"Données : {config.data_dir}")
    typer.echo(f"Catalogue : {config.data_path}")
    typer.echo(f"Source du catalogue : {config.data_url}")
    typer.echo(f"Token bangumi.tv : {'défini' if config.bangumi_api_token else 'non défini'}")
    typer.echo(f"Proxy Mikan : {config.feed_proxy or 'aucun'}")
    typer.echo(
        f"TTL : images {config.image_ttl_hours:g}h, PV {config.video_ttl_hours:g}h, "
        f"RSS {config.feed_ttl_hours:g}h"
    )
    typer.echo(
        f"Rafraîchissement : {config.refresh_cron_hour:02d}:{config.refresh_cron_minute:02d} "
        f"({config.timezone}), lots de {config.refresh_chunk_size}"
    )
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"bangumi-list v{__version__}")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Adresse d'écoute")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Port d'écoute")] = 3000,
    reload: Annotated[bool, typer.Option(help="Rechargement automatique")] = False,
) -> None:
    """Lance le serveur HTTP bangumi-list."""
    import uvicorn

    typer.echo(f"Démarrage du serveur sur {host}:{port}")
    uvicorn.run("bangumi_list.web.app:app", host=host, port=port, reload=reload)


def main() -> None:
    """Point d'entrée de l'application."""
    settings = container.config()
    configure_logging(settings)

    logger.info("Démarrage de bangumi-list", version=__version__)

    app()


if __name__ == "__main__":
    main()
