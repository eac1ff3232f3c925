"""
Application FastAPI de bangumi-list.

Au demarrage, le lifespan construit le Container DI, initialise le contexte
d'enrichissement (cache, catalogue, scheduler) et le range dans app.state.
A l'arret, le contexte est arrete proprement (jobs, minuteur de retry,
sauvegarde du cache).
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..container import Container
from .routes.bangumi import router as bangumi_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise le contexte d'enrichissement au démarrage et l'arrête à la fin."""
    container = Container()
    context = container.enrichment_context()
    await context.init()
    app.state.container = container
    app.state.context = context
    try:
        yield
    finally:
        await context.shutdown()


def create_app() -> FastAPI:
    """Construit l'application et monte les routes."""
    application = FastAPI(title="bangumi-list", version=__version__, lifespan=lifespan)
    application.include_router(bangumi_router)
    return application


app = create_app()
