"""Catalog Routes — local card table lookup and external card search (pokemon-search)."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.pokemon_tcg_client import (
    PokemonTCGClient, get_pokemon_tcg_client,
)
from marketplace.schemas.catalog import CardPage, CatalogSearchRequest, CatalogSearchResponse
from marketplace.services import catalog_service

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


@router.get("/cards", response_model=CardPage)
async def search_cards(
    name: str | None = Query(None, max_length=200),
    set_id: str | None = Query(None, max_length=50),
    number: str | None = Query(None, max_length=30),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    cards = await catalog_service.search_local_cards(
        db, name=name, set_id=set_id, number=number, limit=limit, offset=offset,
    )
    return {"cards": cards, "limit": limit, "offset": offset}


@router.post("/search", response_model=CatalogSearchResponse)
async def search_external(
    body: CatalogSearchRequest,
    client: PokemonTCGClient = Depends(get_pokemon_tcg_client),
):
    return await catalog_service.search_remote_cards(
        client, body.query, page=body.page, page_size=body.page_size,
    )
