"""Request schemas for API endpoints."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator

from api.models.app_config import HH_MM_PATTERN
from api.models.provider import ProviderCategoryEnum, ProviderKindEnum


class UpdateStatusRequest(BaseModel):
    """Body of POST /news/update-status."""
    id: str = Field(..., min_length=1, description="News article ID")
    published: StrictBool = Field(..., description="Desired publish state")


class DeleteNewsRequest(BaseModel):
    """Body of POST /news/delete."""
    id: str = Field(..., min_length=1, description="News article ID")


class CreateNewsRequest(BaseModel):
    """Body of POST /news/create."""
    title: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    source_url: str = Field(..., description="Original article URL")
    source_name: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = Field(default=None, description="Category name")

    @field_validator('source_url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v


class ProviderConfigRequest(BaseModel):
    """Provider configuration as edited in the admin console."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ProviderKindEnum] = None
    provider_category: Optional[ProviderCategoryEnum] = None
    endpoint: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    model: Optional[str] = None
    method: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    body_template: Optional[Any] = None
    response_path: Optional[str] = None
    success_condition: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, gt=0)
    priority: Optional[int] = None
    enabled: Optional[bool] = None

    @field_validator(
        "name", "type", "provider_category", "endpoint", "model",
        "method", "headers", "priority", "enabled",
        mode="before"
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Omit a field to leave it unchanged; null is not a value these fields can hold."""
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent, under their stored names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class PresetTestRequest(BaseModel):
    """Body of POST /ai/status."""
    provider: str = Field(..., description="Preset name, e.g. OpenRouter")
    config: Dict[str, Any] = Field(default_factory=dict)


class GenerateRequest(BaseModel):
    """Body of POST /ai/generate."""
    prompt: str = Field(..., min_length=1)
    system_prompt: Optional[str] = None
    feature: str = "news_generate"


class RssScheduleRequest(BaseModel):
    """Body of POST /app-config/rss."""
    update_interval_minutes: StrictInt = Field(..., ge=1, le=1440, description="Minutes between RSS runs, at most 24 hours")
    start_time: Optional[str] = Field(default=None, pattern=HH_MM_PATTERN, description="First run of the day as HH:MM")
