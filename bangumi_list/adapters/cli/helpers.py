"""
Utilitaires partages pour les commandes CLI de bangumi-list.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_context : decorateur injectant un contexte d'enrichissement initialise
"""

from contextlib import contextmanager
from functools import wraps

from loguru import logger as loguru_logger
from rich.console import Console

from bangumi_list.container import Container

console = Console()


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("bangumi_list")
    try:
        yield
    finally:
        loguru_logger.enable("bangumi_list")


def with_context(load_catalog: bool = True):
    """
    Decorateur qui injecte le contexte d'enrichissement en premier argument.

    Le contexte est initialise sans scheduler (usage ponctuel) puis arrete
    a la fin de la commande, ce qui sauvegarde le cache.

    Args:
        load_catalog: Si False, le contexte n'est pas initialise (ni cache
                      ni catalogue charges).

    Usage:
        @with_context()
        async def my_command(context, ...):
            stats = await context.refresh_working_set()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            context = container.enrichment_context()
            if load_catalog:
                await context.init(start_scheduler=False)
            try:
                return await func(context, *args, **kwargs)
            finally:
                await context.shutdown()
        return wrapper
    return decorator
