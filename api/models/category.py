"""Category model definitions."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class CategoryModel(BaseModel):
    """Category model for database representation."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    slug: str
    post_count: int = Field(default=0, ge=0, alias="postCount")
    last_post_at: Optional[datetime] = Field(default=None, alias="lastPostAt")
    enabled: bool = True
