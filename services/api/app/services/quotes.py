"""Market quotes cache backed by three public APIs (+ optional Redis sharing).

Serves the home page quote widget (USD, EUR, BTC in BRL and the Ibovespa index):
- One process-wide snapshot, replaced wholesale on every refresh
- Refreshed by a background task every TTL and on read when stale
- Concurrent refreshes share one in-flight task (no duplicate upstream calls)
- Each upstream is fetched concurrently with its own timeout; a failing
  upstream keeps its previous (or default) values
- Reads never fail: with every upstream down the snapshot carries an `error`

Upstreams:
- exchangerate-api.com: USD->BRL and USD->EUR rates
- CoinGecko: BTC price in BRL with 24h change
- Yahoo Finance chart API: ^BVSP last price and previous close
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
import contextlib
from dataclasses import dataclass, field, replace
import logging
import time
from typing import Any

import httpx
from redis.exceptions import RedisError

from app.services.errors import UpstreamUnavailable
from app.settings import Settings, get_settings
from app.stores.redis import get_quote_snapshot_cache, set_quote_snapshot_cache

logger = logging.getLogger("uvicorn.error")

TREND_UP = "up"
TREND_DOWN = "down"
DEGRADED_MESSAGE = "Dados podem estar desatualizados"


@dataclass(frozen=True)
class Quote:
    value: str
    change: str
    trend: str


DEFAULT_QUOTES: dict[str, Quote] = {
    "usd": Quote(value="R$ 5,12", change="+0.8%", trend=TREND_UP),
    "eur": Quote(value="R$ 5,58", change="-0.3%", trend=TREND_DOWN),
    "btc": Quote(value="R$ 285.420", change="+2.1%", trend=TREND_UP),
    "ibovespa": Quote(value="126.847", change="+1.2%", trend=TREND_UP),
}


@dataclass(frozen=True)
class QuoteSnapshot:
    """Immutable bundle of quotes. Never mutated, only replaced."""

    values: Mapping[str, Quote]
    fetched_at: float
    error: str | None = None
    failed_sources: tuple[str, ...] = ()

    def is_stale(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at > ttl

    def _values_payload(self) -> dict[str, Any]:
        return {
            symbol: {"value": q.value, "change": q.change, "trend": q.trend}
            for symbol, q in self.values.items()
        }

    def to_response(self) -> dict[str, Any]:
        """Public payload: quotes by symbol plus `error` only when degraded."""
        payload = self._values_payload()
        if self.error:
            payload["error"] = self.error
        return payload

    def to_cache_payload(self) -> dict[str, Any]:
        return {
            "values": self._values_payload(),
            "fetched_at": self.fetched_at,
            "error": self.error,
            "failed_sources": list(self.failed_sources),
        }

    @classmethod
    def from_cache_payload(cls, payload: Mapping[str, Any]) -> QuoteSnapshot:
        """Rebuild a snapshot shared by another worker.

        Raises KeyError/ValueError unless every symbol in DEFAULT_QUOTES is
        present with a valid trend; unknown symbols are dropped.
        """
        raw = payload["values"]
        values = {}
        for symbol in DEFAULT_QUOTES:
            q = raw[symbol]
            trend = str(q["trend"])
            if trend not in ("up", "down"):
                raise ValueError(f"Invalid trend for {symbol}: {trend!r}")
            values[symbol] = Quote(value=str(q["value"]), change=str(q["change"]), trend=trend)
        return cls(
            values=values,
            fetched_at=float(payload["fetched_at"]),
            error=payload.get("error"),
            failed_sources=tuple(payload.get("failed_sources") or ()),
        )


def default_snapshot(now: float) -> QuoteSnapshot:
    """Hardcoded snapshot used when nothing was ever fetched."""
    return QuoteSnapshot(values=dict(DEFAULT_QUOTES), fetched_at=now, error=DEGRADED_MESSAGE)


# ============================================================
# Formatting (pt-BR)
# ============================================================


def format_number_br(value: float, decimals: int = 0) -> str:
    """Format a number pt-BR style: 285420.5 -> "285.420,50" (decimals=2)."""
    formatted = f"{value:,.{decimals}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def format_change(percent: float) -> str:
    sign = "+" if percent >= 0 else ""
    return f"{sign}{percent:.1f}%"


def trend_for(percent: float) -> str:
    return TREND_UP if percent >= 0 else TREND_DOWN


# ============================================================
# Upstream parsers
# ============================================================
# Each parser receives the upstream JSON and the quotes currently known, and
# returns replacements for the symbols it owns. Any KeyError/TypeError/
# ValueError means the upstream answered with an unusable payload.


def parse_currency_rates(data: dict[str, Any], known: Mapping[str, Quote]) -> dict[str, Quote]:
    """exchangerate-api.com latest/USD -> usd, eur (in BRL).

    The endpoint has no daily change, so change/trend are carried over.
    """
    rates = data["rates"]
    usd_brl = float(rates["BRL"])
    usd_eur = float(rates["EUR"])
    if usd_brl <= 0 or usd_eur <= 0:
        raise ValueError(f"Non-positive rates: BRL={usd_brl} EUR={usd_eur}")
    eur_brl = usd_brl / usd_eur

    return {
        "usd": replace(known["usd"], value=f"R$ {format_number_br(usd_brl, 2)}"),
        "eur": replace(known["eur"], value=f"R$ {format_number_br(eur_brl, 2)}"),
    }


def parse_crypto_price(data: dict[str, Any], known: Mapping[str, Quote]) -> dict[str, Quote]:
    """CoinGecko simple/price (bitcoin, brl, 24h change) -> btc."""
    bitcoin = data["bitcoin"]
    price = float(bitcoin["brl"])
    quote = replace(known["btc"], value=f"R$ {format_number_br(price, 0)}")

    change = bitcoin.get("brl_24h_change")
    if change is not None:
        change = float(change)
        quote = replace(quote, change=format_change(change), trend=trend_for(change))
    return {"btc": quote}


def parse_index_chart(data: dict[str, Any], known: Mapping[str, Quote]) -> dict[str, Quote]:
    """Yahoo Finance v8 chart for ^BVSP -> ibovespa."""
    meta = data["chart"]["result"][0]["meta"]
    price = float(meta["regularMarketPrice"])
    quote = replace(known["ibovespa"], value=format_number_br(round(price), 0))

    previous = meta.get("chartPreviousClose") or meta.get("previousClose")
    if previous:
        change = (price - float(previous)) / float(previous) * 100
        quote = replace(quote, change=format_change(change), trend=trend_for(change))
    return {"ibovespa": quote}


@dataclass(frozen=True)
class QuoteSource:
    name: str
    url: str
    parse: Callable[[dict[str, Any], Mapping[str, Quote]], dict[str, Quote]] = field(repr=False)


def default_sources(settings: Settings) -> tuple[QuoteSource, ...]:
    return (
        QuoteSource("currency", settings.quotes_currency_url, parse_currency_rates),
        QuoteSource("crypto", settings.quotes_crypto_url, parse_crypto_price),
        QuoteSource("index", settings.quotes_index_url, parse_index_chart),
    )


# ============================================================
# Cache
# ============================================================


class QuoteCache:
    """Process-wide quote snapshot with explicit init()/shutdown() lifecycle.

    Created by the application factory and injected into routes; tests build
    their own instance with a mock transport and a fake clock.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float | None = None,
        fetch_timeout: float | None = None,
        sources: tuple[QuoteSource, ...] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = get_settings()
        self.ttl = float(ttl_seconds if ttl_seconds is not None else settings.quotes_ttl_seconds)
        self.fetch_timeout = float(
            fetch_timeout if fetch_timeout is not None else settings.quotes_fetch_timeout_seconds
        )
        self.sources = sources if sources is not None else default_sources(settings)
        self._user_agent = f"{settings.app_name}/{settings.app_version}"
        self._transport = transport
        self._clock = clock

        self._current: QuoteSnapshot | None = None
        self._refresh_task: asyncio.Task[QuoteSnapshot] | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._http_client: httpx.AsyncClient | None = None

    @property
    def current(self) -> QuoteSnapshot | None:
        return self._current

    # ---------------- lifecycle ----------------

    async def init(self, *, start_timer: bool = True) -> None:
        """Warm from Redis if possible and start the background refresh task."""
        if self._current is None:
            self._current = await self._try_load_shared()
            if self._current is not None:
                logger.info("[quotes] snapshot warmed from Redis")

        if start_timer and self._timer_task is None:
            self._timer_task = asyncio.create_task(self._run_timer(), name="quote-cache-refresh")
            logger.info(f"[quotes] background refresh every {self.ttl:.0f}s")

    async def shutdown(self) -> None:
        """Stop the timer, drop any in-flight refresh and close the HTTP client."""
        for task in (self._timer_task, self._refresh_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._timer_task = None
        self._refresh_task = None

        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _run_timer(self) -> None:
        current = self._current
        if current is None or current.is_stale(self._clock(), self.ttl):
            await self._refresh_logged()
        while True:
            await asyncio.sleep(self.ttl)
            await self._refresh_logged()

    async def _refresh_logged(self) -> None:
        try:
            await self.refresh()
        except Exception:
            # Keep the timer alive; the next tick retries.
            logger.exception("[quotes] background refresh failed")

    # ---------------- reads ----------------

    async def get(self) -> QuoteSnapshot:
        """Return the current snapshot, refreshing first when missing or stale.

        Never raises.
        """
        current = self._current
        if current is not None and not current.is_stale(self._clock(), self.ttl):
            return current

        try:
            return await self.refresh()
        except Exception:
            logger.exception("[quotes] refresh failed, serving fallback snapshot")
            return self._current or default_snapshot(self._clock())

    async def refresh(self) -> QuoteSnapshot:
        """Fetch all upstreams and replace the snapshot.

        Callers arriving while a refresh is running await that same refresh.
        """
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.create_task(self._refresh(), name="quote-cache-fetch")
            self._refresh_task = task
        # shield: one caller being cancelled must not cancel the shared refresh.
        return await asyncio.shield(task)

    # ---------------- fetching ----------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.fetch_timeout,
                transport=self._transport,
                headers={"User-Agent": self._user_agent, "Accept": "application/json"},
            )
        return self._http_client

    async def _refresh(self) -> QuoteSnapshot:
        known: Mapping[str, Quote] = self._current.values if self._current else DEFAULT_QUOTES
        client = await self._get_client()

        results = await asyncio.gather(
            *(self._fetch_source(client, source, known) for source in self.sources),
            return_exceptions=True,
        )

        values = dict(known)
        failed: list[str] = []
        for source, result in zip(self.sources, results):
            if isinstance(result, UpstreamUnavailable):
                logger.warning(f"[quotes] {result.message}")
                failed.append(source.name)
            elif isinstance(result, Exception):
                logger.error(f"[quotes] unexpected error from {source.name}: {result!r}")
                failed.append(source.name)
            else:
                values.update(result)

        error = DEGRADED_MESSAGE if self.sources and len(failed) == len(self.sources) else None
        snapshot = QuoteSnapshot(
            values=values,
            fetched_at=self._clock(),
            error=error,
            failed_sources=tuple(failed),
        )
        self._current = snapshot

        if failed:
            logger.info(f"[quotes] refreshed with fallbacks for: {', '.join(failed)}")
        else:
            logger.info("[quotes] refreshed from all upstreams")

        await self._try_share(snapshot)
        return snapshot

    async def _fetch_source(
        self,
        client: httpx.AsyncClient,
        source: QuoteSource,
        known: Mapping[str, Quote],
    ) -> dict[str, Quote]:
        try:
            resp = await asyncio.wait_for(client.get(source.url), timeout=self.fetch_timeout)
            if resp.status_code != 200:
                logger.error(f"{source.name} quotes API error: {resp.status_code} - {resp.text[:200]}")
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError("Unexpected non-object response")
            return source.parse(data, known)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(
                source.name, f"{source.name} timed out after {self.fetch_timeout:.1f}s"
            ) from e
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(source.name, f"{source.name} fetch failed: {e!r}") from e

    # ---------------- Redis sharing ----------------

    async def _try_load_shared(self) -> QuoteSnapshot | None:
        try:
            payload = await get_quote_snapshot_cache()
        except (RuntimeError, RedisError):
            # Redis may be unavailable in tests/local minimal env.
            return None
        if not payload:
            return None

        try:
            snapshot = QuoteSnapshot.from_cache_payload(payload)
        except (KeyError, TypeError, ValueError):
            return None
        if snapshot.is_stale(self._clock(), self.ttl):
            return None
        return snapshot

    async def _try_share(self, snapshot: QuoteSnapshot) -> None:
        try:
            await set_quote_snapshot_cache(snapshot.to_cache_payload(), ttl=int(self.ttl))
        except (RuntimeError, RedisError):
            return
