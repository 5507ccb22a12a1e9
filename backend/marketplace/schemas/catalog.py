"""Catalog Schemas — local card lookup and external Pokémon TCG search."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    english_name: str | None
    set_id: str | None
    set_name: str | None
    number: str | None
    rarity: str | None
    supertype: str | None
    image_url: str | None
    language: str


class CardPage(BaseModel):
    cards: list[CardResponse]
    limit: int
    offset: int


class CatalogSearchRequest(BaseModel):
    query: str = Field(max_length=200)
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=250)


class CatalogSearchResponse(BaseModel):
    data: list[dict]
    count: int
    total_count: int
    page: int
    page_size: int
