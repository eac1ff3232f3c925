"""
Routes du catalogue et du cache d'enrichissement.

Les listes (archive, onair) ne lisent que le cache. La lecture d'une seule
entree declenche en plus un rafraichissement non force en arriere-plan :
la reponse reflete le cache au moment de la lecture.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from ...services.context import EnrichmentContext
from ..deps import find_item, get_context

router = APIRouter(prefix="/api/v1/bangumi", tags=["bangumi"])


@router.post("/update", status_code=201)
async def update_catalog(context: EnrichmentContext = Depends(get_context)):
    """Télécharge à nouveau le catalogue bangumi-data."""
    try:
        await context.catalog.update(force=True)
    except Exception:
        logger.exception("Mise à jour du catalogue en échec")
        return JSONResponse({"error": "Catalog update failed"}, status_code=500)
    return {"version": context.catalog.version}


@router.get("/season")
async def get_seasons(
    start: Optional[str] = None,
    context: EnrichmentContext = Depends(get_context),
):
    """Saisons connues, à partir de `start` si elle existe."""
    items = list(context.catalog.seasons)
    if start in items:
        items = items[items.index(start):]
    return {"version": context.catalog.version, "items": items}


@router.get("/site")
async def get_sites(
    type: Optional[str] = None,
    context: EnrichmentContext = Depends(get_context),
):
    """Métadonnées des sites, éventuellement filtrées par type."""
    site_map = context.catalog.site_map
    if type:
        return dict(site_map.get(type, {}))
    return {name: site for sites in site_map.values() for name, site in sites.items()}


@router.get("/archive/{season}")
async def get_archive(season: str, context: EnrichmentContext = Depends(get_context)):
    items = context.enrich_items(context.catalog.get_archive(season))
    return {"items": [item.to_dict() for item in items]}


@router.get("/onair")
async def get_on_air(context: EnrichmentContext = Depends(get_context)):
    items = context.enrich_items(context.catalog.get_on_air())
    return {"items": [item.to_dict() for item in items]}


@router.get("/item/{item_id}")
async def get_item(item_id: str, context: EnrichmentContext = Depends(get_context)):
    """Entrée enrichie ; lance un rafraichissement en arrière-plan."""
    item = context.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item.to_dict()


@router.get("/item/{item_id}/cache")
async def get_item_cache(item_id: str, context: EnrichmentContext = Depends(get_context)):
    item = find_item(context, item_id)
    return context.get_item_cache_status(item)


@router.post("/item/{item_id}/cache/refresh")
async def refresh_item_cache(item_id: str, context: EnrichmentContext = Depends(get_context)):
    """Rafraichit immédiatement les trois données d'une entrée."""
    item = find_item(context, item_id)
    try:
        stats = await context.refresh_one(item)
    except Exception:
        logger.exception(f"Rafraichissement de {item_id} en échec")
        return JSONResponse({"error": "Failed to refresh item cache"}, status_code=500)
    return {
        "message": (
            "Item cache refreshed with failures"
            if stats.failed
            else "Item cache refreshed successfully"
        ),
        "stats": asdict(stats),
        "cache": context.get_item_cache_status(item),
    }


@router.post("/cache/refresh")
async def refresh_cache(context: EnrichmentContext = Depends(get_context)):
    """Passe complète sur les saisons courante et précédente."""
    try:
        stats = await context.refresh_working_set()
    except Exception:
        logger.exception("Rafraichissement manuel du cache en échec")
        return JSONResponse({"error": "Cache refresh failed"}, status_code=500)
    if stats is None:
        return {"message": "Cache refresh already in progress"}
    return {
        "message": "Cache refresh completed successfully",
        "stats": asdict(stats),
    }


@router.get("/cache/status")
async def get_cache_status(context: EnrichmentContext = Depends(get_context)):
    return {
        "isRefreshing": context.is_refreshing_cache,
        "failedItems": context.get_failed_items_status(),
    }


@router.get("/cache/recent")
async def get_recent_cache_status(context: EnrichmentContext = Depends(get_context)):
    return context.get_recent_seasons_cache_status()
