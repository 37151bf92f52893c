"""News article model definitions."""
from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class SummaryStatusEnum(str, Enum):
    """Where an ingested article is in the background summary queue."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NewsArticleModel(BaseModel):
    """News article model for database representation."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    summary: str
    image: Optional[str] = None
    source_url: str
    source_name: Optional[str] = None
    normalized_url: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    is_rss: bool = False
    content: Optional[str] = None
    summary_status: Optional[str] = None
    ai_category: Optional[str] = None
    ai_provider_id: Optional[str] = None
    ai_model: Optional[str] = None
    ai_generated_at: Optional[datetime] = None
