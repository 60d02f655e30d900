"""Market quotes endpoint.

GET /v1/quotes - USD, EUR, BTC (BRL) and Ibovespa for the home widget.

Always 200: degraded mode is signalled only by the optional `error` field.
"""

from fastapi import APIRouter, Depends

from app.dependencies import get_quote_cache
from app.schemas import QuotesResponse
from app.services.quotes import QuoteCache

router = APIRouter()


@router.get("", response_model=QuotesResponse, response_model_exclude_none=True)
async def get_quotes(cache: QuoteCache = Depends(get_quote_cache)) -> QuotesResponse:
    """Get the cached quotes snapshot (refreshed first if stale)."""
    snapshot = await cache.get()
    return QuotesResponse.model_validate(snapshot.to_response())
