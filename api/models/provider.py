"""AI provider model definitions."""
from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ProviderKindEnum(str, Enum):
    """Request family a provider speaks."""
    OPENAI_COMPATIBLE = "openai-compatible"
    LOCAL = "local"
    CUSTOM = "custom"


class ProviderCategoryEnum(str, Enum):
    """Billing category of a provider."""
    FREE = "free"
    PAID = "paid"
    LOCAL = "local"


class ProviderStatusEnum(str, Enum):
    """Connectivity status from the last test."""
    ONLINE = "online"
    OFFLINE = "offline"


class HealthStatusEnum(str, Enum):
    """Health band derived from the health score."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class AiProviderModel(BaseModel):
    """AI provider model for database representation."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str = Field(default="", alias="_id")
    name: str
    description: Optional[str] = ""
    type: ProviderKindEnum = ProviderKindEnum.OPENAI_COMPATIBLE
    provider_category: ProviderCategoryEnum = ProviderCategoryEnum.FREE
    endpoint: str
    api_key: Optional[str] = Field(default="", alias="apiKey")
    model: str = ""
    method: str = "POST"
    headers: Dict[str, str] = Field(default_factory=dict)
    body_template: Optional[Any] = None
    response_path: Optional[str] = None
    success_condition: Optional[str] = None
    timeout_ms: Optional[int] = None
    priority: int = 99
    enabled: bool = True

    status: Optional[ProviderStatusEnum] = None
    is_healthy: bool = Field(default=True, alias="isHealthy")
    health_status: HealthStatusEnum = Field(default=HealthStatusEnum.HEALTHY, alias="healthStatus")
    health_score: int = Field(default=100, ge=0, le=100, alias="healthScore")
    paused_until: Optional[datetime] = Field(default=None, alias="pausedUntil")
    failure_count: int = Field(default=0, alias="failureCount")
    last_failure_at: Optional[datetime] = Field(default=None, alias="lastFailureAt")
    last_error: Optional[str] = Field(default=None, alias="lastError")
