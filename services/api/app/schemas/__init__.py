"""Pydantic schemas for API request/response validation."""

from app.schemas.articles import (
    AdminArticleListResponse,
    ArticleDetailResponse,
    ArticleIn,
    ArticleListResponse,
    ArticleMutationResponse,
    ArticleOut,
    CategoryListResponse,
    CategoryOut,
    HeroSlotData,
    HeroSlotRequest,
    HeroSlotResponse,
    HomeResponse,
    Pagination,
    SearchQuery,
    SearchResponse,
)
from app.schemas.common import ErrorDetail, ErrorResponse, error_body
from app.schemas.quotes import QuoteOut, QuotesResponse

__all__ = [
    "AdminArticleListResponse",
    "ArticleDetailResponse",
    "ArticleIn",
    "ArticleListResponse",
    "ArticleMutationResponse",
    "ArticleOut",
    "CategoryListResponse",
    "CategoryOut",
    "ErrorDetail",
    "ErrorResponse",
    "HeroSlotData",
    "HeroSlotRequest",
    "HeroSlotResponse",
    "HomeResponse",
    "Pagination",
    "QuoteOut",
    "QuotesResponse",
    "SearchQuery",
    "SearchResponse",
    "error_body",
]
