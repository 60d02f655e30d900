"""Schemas for the quotes widget endpoint (/v1/quotes)."""

from typing import Literal

from pydantic import BaseModel


class QuoteOut(BaseModel):
    """A single instrument as displayed by the widget."""

    value: str
    change: str
    trend: Literal["up", "down"]


class QuotesResponse(BaseModel):
    """Response payload for GET /v1/quotes.

    `error` is only present when every upstream failed and values are fallbacks.
    """

    usd: QuoteOut
    eur: QuoteOut
    btc: QuoteOut
    ibovespa: QuoteOut
    error: str | None = None
