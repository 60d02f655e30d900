"""Schemas for article endpoints (/v1/news, /v1/admin/news)."""

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt


class ArticleOut(BaseModel):
    """Article as returned by public and admin endpoints."""

    id: str
    title: str
    slug: str
    summary: str | None = None
    content: str
    image_url: str | None = Field(alias="imageUrl", default=None)
    images: list[str] = Field(default_factory=list)
    category: str
    author: str
    is_featured: bool = Field(alias="isFeatured")
    is_published: bool = Field(alias="isPublished")
    hero_slot: int | None = Field(alias="heroSlot", default=None)
    is_vertical_list: bool = Field(alias="isVerticalList")
    views: int = 0
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class ArticleIn(BaseModel):
    """Request body for creating or updating an article.

    Required-field checks (title, content, category) happen in the service so
    that missing fields and blank fields produce the same error.
    """

    title: str | None = None
    slug: str | None = None
    summary: str | None = None
    content: str | None = None
    image_url: str | None = Field(alias="imageUrl", default=None)
    images: list[str] = Field(default_factory=list)
    category: str | None = None
    author: str | None = None
    is_featured: bool = Field(alias="isFeatured", default=False)
    is_published: bool = Field(alias="isPublished", default=False)
    hero_slot: StrictInt | None = Field(alias="heroSlot", default=None)
    is_vertical_list: bool = Field(alias="isVerticalList", default=False)

    model_config = {"populate_by_name": True}


class ArticleMutationResponse(BaseModel):
    """Response from create/update endpoints."""

    success: bool = True
    message: str
    data: ArticleOut


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    model_config = {"populate_by_name": True}


class ArticleListResponse(BaseModel):
    """Paged list of published articles."""

    success: bool = True
    data: list[ArticleOut]
    pagination: Pagination


class SearchQuery(BaseModel):
    search: str
    category: str = "all"


class SearchResponse(ArticleListResponse):
    """Paged search results plus the query echo."""

    query: SearchQuery


class HomeResponse(BaseModel):
    """Home page payload: hero slots (keyed "1".."3") + latest non-hero articles."""

    hero: dict[str, ArticleOut]
    latest: list[ArticleOut]
    pagination: Pagination


class ArticleDetailResponse(BaseModel):
    """Single article with related articles from the same category."""

    data: ArticleOut
    related: list[ArticleOut]


class AdminArticleListResponse(BaseModel):
    count: int
    data: list[ArticleOut]


class HeroSlotRequest(BaseModel):
    """Request body for PUT /v1/admin/news/hero.

    heroSlot must be 1, 2, 3 or null; range is checked by the hero slot service.
    """

    article_id: str | None = Field(alias="articleId", default=None)
    hero_slot: StrictInt | None = Field(alias="heroSlot", default=None)

    model_config = {"populate_by_name": True}


class HeroSlotData(BaseModel):
    id: str
    hero_slot: int | None = Field(alias="heroSlot")

    model_config = {"populate_by_name": True}


class HeroSlotResponse(BaseModel):
    success: bool = True
    data: HeroSlotData


class CategoryOut(BaseModel):
    id: str
    name: str
    color: str

    model_config = {"from_attributes": True}


class CategoryListResponse(BaseModel):
    data: list[CategoryOut]
