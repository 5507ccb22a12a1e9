"""PokemonCard ORM — read-only card catalog rows (populated by import jobs elsewhere)."""

import uuid

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from marketplace.db.base import Base


class PokemonCard(Base):
    __tablename__ = "pokemon_card_attributes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    english_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    set_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(50), nullable=True)
    supertype: Mapped[str | None] = mapped_column(String(30), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(5), nullable=False, default="en")
