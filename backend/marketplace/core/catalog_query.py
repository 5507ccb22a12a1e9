"""Catalog Query — turns free text into a Pokémon TCG API search expression.

"charizard" -> name:"charizard*"
"charizard 4" -> name:"charizard*" number:"4"
"""

import re

from marketplace.core.errors import InvalidRequestError

_CARD_NUMBER_RE = re.compile(r"^[a-zA-Z0-9]+$")
_QUOTE_RE = re.compile(r'["\\]')


def _clean(text: str) -> str:
    return _QUOTE_RE.sub("", text)


def build_search_query(text: str) -> str:
    query = (text or "").strip()
    if not query:
        raise InvalidRequestError("Query parameter is required", field="query")
    parts = query.split()
    if len(parts) > 1 and _CARD_NUMBER_RE.match(parts[-1]):
        name = _clean(" ".join(parts[:-1]))
        return f'name:"{name}*" number:"{parts[-1]}"'
    return f'name:"{_clean(query)}*"'


def simplify_card(card: dict) -> dict:
    """Reduce an API card payload to the fields the marketplace displays."""
    card_set = card.get("set") or {}
    return {
        "id": card.get("id"),
        "name": card.get("name"),
        "supertype": card.get("supertype"),
        "subtypes": card.get("subtypes") or [],
        "set": {
            "id": card_set.get("id"),
            "name": card_set.get("name"),
            "series": card_set.get("series"),
            "ptcgo_code": card_set.get("ptcgoCode"),
            "release_date": card_set.get("releaseDate"),
            "images": card_set.get("images"),
        },
        "number": card.get("number"),
        "artist": card.get("artist"),
        "rarity": card.get("rarity"),
        "images": card.get("images"),
    }
