"""Tests for the quotes cache and GET /v1/quotes."""

import asyncio

import httpx
import pytest
from httpx import AsyncClient

from app.dependencies import get_quote_cache
from app.main import app as fastapi_app
from app.services import quotes as quotes_service
from app.services.quotes import (
    DEFAULT_QUOTES,
    DEGRADED_MESSAGE,
    QuoteCache,
    QuoteSnapshot,
    format_number_br,
    parse_crypto_price,
    parse_currency_rates,
    parse_index_chart,
)

TTL = 1800

PAYLOADS = {
    "currency": {"base": "USD", "rates": {"BRL": 5.5, "EUR": 0.9}},
    "crypto": {"bitcoin": {"brl": 350123.7, "brl_24h_change": -1.234}},
    "index": {"chart": {"result": [{"meta": {"regularMarketPrice": 130500.6, "chartPreviousClose": 129000.0}}]}},
}


def _source_for(request: httpx.Request) -> str:
    host = request.url.host
    if "exchangerate" in host:
        return "currency"
    if "coingecko" in host:
        return "crypto"
    return "index"


class Upstreams:
    """Mock upstream APIs recording every call."""

    def __init__(self, failing: set[str] | None = None, delay: float = 0.0):
        self.failing = failing or set()
        self.delay = delay
        self.calls: list[str] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        source = _source_for(request)
        self.calls.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        if source in self.failing:
            return httpx.Response(503, json={"error": "unavailable"})
        return httpx.Response(200, json=PAYLOADS[source])


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_cache(upstreams: Upstreams, clock: FakeClock, **kwargs) -> QuoteCache:
    return QuoteCache(
        ttl_seconds=TTL,
        fetch_timeout=kwargs.pop("fetch_timeout", 1.0),
        transport=httpx.MockTransport(upstreams),
        clock=clock,
        **kwargs,
    )


# ============================================================
# Parsers / formatting
# ============================================================


def test_format_number_br():
    assert format_number_br(285420, 0) == "285.420"
    assert format_number_br(5.123, 2) == "5,12"
    assert format_number_br(1234567.891, 2) == "1.234.567,89"


def test_parse_currency_rates_keeps_change_and_trend():
    quotes = parse_currency_rates(PAYLOADS["currency"], DEFAULT_QUOTES)
    assert quotes["usd"].value == "R$ 5,50"
    assert quotes["eur"].value == "R$ 6,11"
    assert quotes["usd"].change == DEFAULT_QUOTES["usd"].change
    assert quotes["eur"].trend == DEFAULT_QUOTES["eur"].trend


def test_parse_currency_rates_rejects_missing_rate():
    with pytest.raises(KeyError):
        parse_currency_rates({"rates": {"BRL": 5.5}}, DEFAULT_QUOTES)


def test_parse_crypto_price_negative_change():
    btc = parse_crypto_price(PAYLOADS["crypto"], DEFAULT_QUOTES)["btc"]
    assert btc.value == "R$ 350.124"
    assert btc.change == "-1.2%"
    assert btc.trend == "down"


def test_parse_index_chart_computes_change_from_previous_close():
    ibov = parse_index_chart(PAYLOADS["index"], DEFAULT_QUOTES)["ibovespa"]
    assert ibov.value == "130.501"
    assert ibov.change == "+1.2%"
    assert ibov.trend == "up"


def test_snapshot_cache_payload_round_trip():
    snapshot = QuoteSnapshot(values=dict(DEFAULT_QUOTES), fetched_at=10.0, failed_sources=("crypto",))
    restored = QuoteSnapshot.from_cache_payload(snapshot.to_cache_payload())
    assert restored == QuoteSnapshot(values=dict(DEFAULT_QUOTES), fetched_at=10.0, failed_sources=("crypto",))


@pytest.mark.parametrize(
    "broken",
    [
        lambda values: values.pop("btc"),
        lambda values: values["usd"].update(trend="flat"),
    ],
)
def test_snapshot_cache_payload_rejects_incomplete_values(broken):
    payload = QuoteSnapshot(values=dict(DEFAULT_QUOTES), fetched_at=10.0).to_cache_payload()
    broken(payload["values"])
    with pytest.raises((KeyError, ValueError)):
        QuoteSnapshot.from_cache_payload(payload)


# ============================================================
# Cache behaviour
# ============================================================


async def test_get_twice_within_ttl_refreshes_once(clock: FakeClock):
    upstreams = Upstreams()
    cache = make_cache(upstreams, clock)

    first = await cache.get()
    clock.now += TTL - 1
    second = await cache.get()

    assert second is first
    assert sorted(upstreams.calls) == ["crypto", "currency", "index"]
    await cache.shutdown()


async def test_get_after_ttl_refreshes_again(clock: FakeClock):
    upstreams = Upstreams()
    cache = make_cache(upstreams, clock)

    first = await cache.get()
    clock.now += TTL + 1
    second = await cache.get()

    assert second is not first
    assert second.fetched_at == clock.now
    assert len(upstreams.calls) == 6
    await cache.shutdown()


async def test_single_source_failure_uses_fallback(clock: FakeClock):
    cache = make_cache(Upstreams(failing={"crypto"}), clock)

    snapshot = await cache.get()

    assert snapshot.values["usd"].value == "R$ 5,50"
    assert snapshot.values["ibovespa"].value == "130.501"
    assert snapshot.values["btc"] == DEFAULT_QUOTES["btc"]
    assert snapshot.failed_sources == ("crypto",)
    assert snapshot.error is None
    await cache.shutdown()


async def test_failed_source_keeps_previous_value(clock: FakeClock):
    upstreams = Upstreams()
    cache = make_cache(upstreams, clock)
    first = await cache.get()

    upstreams.failing = {"crypto"}
    second = await cache.refresh()

    assert second.values["btc"] == first.values["btc"]
    assert second.values["btc"].value == "R$ 350.124"
    await cache.shutdown()


async def test_all_sources_failing_on_first_refresh_returns_defaults(clock: FakeClock):
    cache = make_cache(Upstreams(failing={"currency", "crypto", "index"}), clock)

    snapshot = await cache.get()

    assert dict(snapshot.values) == DEFAULT_QUOTES
    assert snapshot.error == DEGRADED_MESSAGE
    assert snapshot.to_response()["error"] == DEGRADED_MESSAGE
    await cache.shutdown()


async def test_slow_source_is_treated_as_failure(clock: FakeClock):
    cache = make_cache(Upstreams(delay=0.5), clock, fetch_timeout=0.05)

    snapshot = await cache.get()

    assert set(snapshot.failed_sources) == {"currency", "crypto", "index"}
    assert snapshot.error == DEGRADED_MESSAGE
    await cache.shutdown()


async def test_concurrent_refreshes_share_one_fetch(clock: FakeClock):
    upstreams = Upstreams(delay=0.05)
    cache = make_cache(upstreams, clock)

    results = await asyncio.gather(cache.refresh(), cache.refresh(), cache.get())

    assert results[0] is results[1] is results[2]
    assert len(upstreams.calls) == 3
    await cache.shutdown()


async def test_init_starts_background_refresh_and_shutdown_stops_it(clock: FakeClock):
    upstreams = Upstreams()
    cache = make_cache(upstreams, clock)

    await cache.init()
    for _ in range(100):
        if cache.current is not None:
            break
        await asyncio.sleep(0.01)

    assert cache.current is not None
    assert cache.current.error is None

    await cache.shutdown()
    calls = len(upstreams.calls)
    await asyncio.sleep(0.05)
    assert len(upstreams.calls) == calls


async def test_incomplete_shared_snapshot_is_not_served(clock: FakeClock, monkeypatch: pytest.MonkeyPatch):
    payload = QuoteSnapshot(values=dict(DEFAULT_QUOTES), fetched_at=clock.now).to_cache_payload()
    del payload["values"]["btc"]

    async def _shared():
        return payload

    monkeypatch.setattr(quotes_service, "get_quote_snapshot_cache", _shared)
    cache = make_cache(Upstreams(), clock)

    await cache.init(start_timer=False)
    assert cache.current is None

    snapshot = await cache.get()
    assert set(snapshot.values) == set(DEFAULT_QUOTES)
    assert snapshot.values["btc"].value == "R$ 350.124"
    await cache.shutdown()


async def test_background_timer_refreshes_every_ttl():
    upstreams = Upstreams()
    cache = QuoteCache(ttl_seconds=0.05, fetch_timeout=1.0, transport=httpx.MockTransport(upstreams))

    await cache.init()
    await asyncio.sleep(0.3)
    await cache.shutdown()

    # Initial refresh plus at least two timer ticks, three upstreams each.
    assert len(upstreams.calls) >= 9


# ============================================================
# GET /v1/quotes
# ============================================================


@pytest.fixture
async def quotes_client():
    async def _client(cache: QuoteCache) -> AsyncClient:
        fastapi_app.dependency_overrides[get_quote_cache] = lambda: cache
        return AsyncClient(transport=httpx.ASGITransport(app=fastapi_app), base_url="http://test")

    yield _client
    fastapi_app.dependency_overrides.clear()


async def test_quotes_endpoint_ok(quotes_client, clock: FakeClock):
    cache = make_cache(Upstreams(), clock)
    async with await quotes_client(cache) as client:
        response = await client.get("/v1/quotes")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"usd", "eur", "btc", "ibovespa"}
    assert data["btc"] == {"value": "R$ 350.124", "change": "-1.2%", "trend": "down"}
    await cache.shutdown()


async def test_quotes_endpoint_degraded_is_still_200(quotes_client, clock: FakeClock):
    cache = make_cache(Upstreams(failing={"currency", "crypto", "index"}), clock)
    async with await quotes_client(cache) as client:
        response = await client.get("/v1/quotes")

    assert response.status_code == 200
    data = response.json()
    assert data["error"] == DEGRADED_MESSAGE
    assert data["usd"] == {"value": "R$ 5,12", "change": "+0.8%", "trend": "up"}
    await cache.shutdown()
