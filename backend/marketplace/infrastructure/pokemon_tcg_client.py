"""Pokémon TCG API Client — resilient async httpx wrapper for card search.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): retried up to max_retries
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to CatalogAPIError (core/errors.py)

Design Decisions:
    - Only GETs go through here, so retrying is always safe
    - ±25% jitter on backoff: prevents thundering herd on the shared API key quota
    - transport injectable: tests pass httpx.MockTransport
"""

import asyncio
import logging
import random
from typing import AsyncGenerator

import httpx

from marketplace.config import get_settings
from marketplace.core.errors import CatalogAPIError

logger = logging.getLogger(__name__)

_MAX_DELAY_MS = 10_000


class PokemonTCGClient:
    """Wraps httpx.AsyncClient with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 15,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-Api-Key"] = api_key
        else:
            logger.warning("Pokémon TCG API key not set; stricter rate limits apply")
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms

    async def search_cards(
        self, query: str, page: int = 1, page_size: int = 20,
    ) -> dict:
        """GET /cards — returns the raw API body ({data, count, totalCount, ...})."""
        params = {
            "q": query,
            "page": page,
            "pageSize": page_size,
            "orderBy": "-set.releaseDate",
        }
        return await self._get("/cards", params)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: dict) -> dict:
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(path, params=params)
            except (httpx.TimeoutException, httpx.TransportError) as e:
                await self._handle_transient_error(e, attempt)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt,
                )
                continue
            if response.status_code >= 400:
                logger.error(
                    f"Catalog API rejected request: {response.status_code} {response.text[:200]}",
                )
                raise CatalogAPIError(
                    f"API responded with {response.status_code}", "client_error",
                )

            logger.info("Catalog API success", extra={"attempt": attempt + 1})
            try:
                return response.json()
            except ValueError:
                raise CatalogAPIError("Malformed JSON response", "invalid_response")
        raise CatalogAPIError("Retries exhausted", "connection_error")

    async def _handle_rate_limit(self, response: httpx.Response, attempt: int) -> None:
        if attempt >= self.max_retries:
            raise CatalogAPIError("Rate limit exceeded after retries", "rate_limit")
        delay = self._extract_retry_after(response) or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(self, e: object, attempt: int) -> None:
        if attempt >= self.max_retries:
            raise CatalogAPIError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(_MAX_DELAY_MS, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


async def get_pokemon_tcg_client() -> AsyncGenerator[PokemonTCGClient, None]:
    """FastAPI dependency — a per-request client configured from settings."""
    settings = get_settings()
    client = PokemonTCGClient(
        settings.pokemon_tcg_api_url,
        api_key=settings.pokemon_tcg_api_key,
        timeout_seconds=settings.pokemon_tcg_timeout_seconds,
        max_retries=settings.pokemon_tcg_max_retries,
        base_delay_ms=settings.pokemon_tcg_base_delay_ms,
    )
    try:
        yield client
    finally:
        await client.aclose()
