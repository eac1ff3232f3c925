"""
Dépendances partagées de l'application web.
"""

from fastapi import HTTPException, Request

from ..core.entities.catalog import BangumiItem
from ..services.context import EnrichmentContext


def get_context(request: Request) -> EnrichmentContext:
    """Contexte d'enrichissement initialisé par le lifespan."""
    return request.app.state.context


def find_item(context: EnrichmentContext, item_id: str) -> BangumiItem:
    """Entrée du catalogue, ou 404."""
    item = context.catalog.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item
