"""Pokémon TCG Client — retry, backoff and error mapping over httpx.MockTransport.

Tests cover:
    - 429 and 5xx are retried until success
    - Other 4xx fail immediately with client_error
    - Exhausted retries and transport errors map to CatalogAPIError
    - Retry-After is honoured in milliseconds
"""

import httpx
import pytest

from marketplace.core.errors import CatalogAPIError
from marketplace.infrastructure.pokemon_tcg_client import PokemonTCGClient

OK_BODY = {"data": [], "count": 0, "totalCount": 0, "page": 1, "pageSize": 20}


def _client(responses: list, max_retries: int = 3) -> tuple[PokemonTCGClient, list]:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    client = PokemonTCGClient(
        "https://tcg.test/v2", max_retries=max_retries, base_delay_ms=0,
        transport=httpx.MockTransport(handler),
    )
    return client, calls


async def test_rate_limit_then_success():
    client, calls = _client([
        httpx.Response(429, headers={"retry-after": "0"}),
        httpx.Response(200, json=OK_BODY),
    ])
    assert await client.search_cards('name:"mew*"') == OK_BODY
    assert len(calls) == 2


async def test_server_error_retried():
    client, calls = _client([
        httpx.Response(502), httpx.Response(500), httpx.Response(200, json=OK_BODY),
    ])
    await client.search_cards('name:"mew*"', page=2, page_size=50)
    assert len(calls) == 3
    assert calls[-1].url.params["page"] == "2"
    assert calls[-1].url.params["pageSize"] == "50"


async def test_client_error_not_retried():
    client, calls = _client([httpx.Response(400, text="bad q")])
    with pytest.raises(CatalogAPIError) as exc:
        await client.search_cards("name:")
    assert exc.value.api_error_type == "client_error"
    assert exc.value.http_status == 502
    assert len(calls) == 1


async def test_retries_exhausted():
    client, calls = _client([httpx.Response(503)] * 3, max_retries=2)
    with pytest.raises(CatalogAPIError) as exc:
        await client.search_cards('name:"mew*"')
    assert exc.value.api_error_type == "connection_error"
    assert len(calls) == 3


async def test_rate_limit_exhausted():
    client, _ = _client([httpx.Response(429)] * 2, max_retries=1)
    with pytest.raises(CatalogAPIError) as exc:
        await client.search_cards('name:"mew*"')
    assert exc.value.api_error_type == "rate_limit"


async def test_transport_error_retried():
    client, calls = _client([
        httpx.ConnectError("refused"), httpx.Response(200, json=OK_BODY),
    ])
    assert await client.search_cards('name:"mew*"') == OK_BODY
    assert len(calls) == 2


async def test_malformed_json():
    client, _ = _client([httpx.Response(200, text="<html>")])
    with pytest.raises(CatalogAPIError) as exc:
        await client.search_cards('name:"mew*"')
    assert exc.value.api_error_type == "invalid_response"


def test_retry_after_in_milliseconds():
    client, _ = _client([])
    assert client._extract_retry_after(httpx.Response(429, headers={"retry-after": "3"})) == 3000
    assert client._extract_retry_after(httpx.Response(429)) is None
