"""Response schemas for API endpoints."""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from api.models.article import NewsArticleModel
from api.models.category import CategoryModel
from shared.utils import mask_api_key


class SuccessResponse(BaseModel):
    """Generic acknowledgement."""
    success: bool = True


class UpdateStatusResponse(SuccessResponse):
    """Response of POST /news/update-status."""
    changed: bool = Field(..., description="Whether the publish state changed")


class DeleteNewsResponse(SuccessResponse):
    """Response of POST /news/delete."""
    deleted: bool = Field(..., description="Whether an article was deleted")


class NewsArticleResponse(BaseModel):
    """Schema for a single news article."""
    id: str
    title: str
    summary: str
    image: Optional[str] = None
    source_url: str
    source_name: Optional[str] = None
    category: Optional[str] = None
    categoryId: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "NewsArticleResponse":
        article = NewsArticleModel.model_validate(doc)
        return cls(
            id=article.id,
            title=article.title,
            summary=article.summary,
            image=article.image,
            source_url=article.source_url,
            source_name=article.source_name,
            category=article.category,
            categoryId=article.category_id,
            published_at=article.published_at,
            created_at=article.created_at,
            created_by=article.created_by
        )


class CategoryResponse(BaseModel):
    """Schema for a single category."""
    id: str
    name: str
    slug: str
    postCount: int
    lastPostAt: Optional[datetime] = None
    enabled: bool

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CategoryResponse":
        category = CategoryModel.model_validate(doc)
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            postCount=category.post_count,
            lastPostAt=category.last_post_at,
            enabled=category.enabled
        )


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse]


def provider_to_response(doc: Dict[str, Any], reveal_key: bool = False) -> Dict[str, Any]:
    """Provider document as JSON, with ``id`` instead of ``_id`` and the key masked."""
    provider = {key: value for key, value in doc.items() if key != "_id"}
    provider["id"] = doc["_id"]
    if not reveal_key:
        provider["apiKey"] = mask_api_key(provider.get("apiKey"))
    return provider


class ConnectionTestResponse(BaseModel):
    """Result of a connectivity test."""
    success: bool
    latency: Optional[int] = None
    message: Optional[str] = None


class GenerateResponse(BaseModel):
    """Generated content and the provider that produced it."""
    content: str
    providerUsed: str
    modelUsed: str
    executionTimeMs: int
    estimatedTokens: int
