"""Catalog Service — local card lookup and proxied Pokémon TCG API search."""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.catalog_query import build_search_query, simplify_card
from marketplace.infrastructure.pokemon_tcg_client import PokemonTCGClient
from marketplace.models.card import PokemonCard

logger = logging.getLogger(__name__)


async def search_local_cards(
    db: AsyncSession,
    *,
    name: str | None = None,
    set_id: str | None = None,
    number: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[PokemonCard]:
    query = select(PokemonCard)
    if name:
        pattern = f"%{name.strip()}%"
        query = query.where(or_(
            PokemonCard.name.ilike(pattern), PokemonCard.english_name.ilike(pattern),
        ))
    if set_id:
        query = query.where(PokemonCard.set_id == set_id)
    if number:
        query = query.where(PokemonCard.number == number)
    query = query.order_by(PokemonCard.name).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def search_remote_cards(
    client: PokemonTCGClient, text: str, page: int = 1, page_size: int = 20,
) -> dict:
    """pokemon-search: build the API query, fetch, and simplify each card."""
    api_query = build_search_query(text)
    logger.info(f"Searching Pokémon TCG API with query: {api_query}")
    body = await client.search_cards(api_query, page=page, page_size=page_size)
    cards = [simplify_card(card) for card in body.get("data") or []]
    return {
        "data": cards,
        "count": body.get("count", len(cards)),
        "total_count": body.get("totalCount", len(cards)),
        "page": body.get("page", page),
        "page_size": body.get("pageSize", page_size),
    }
