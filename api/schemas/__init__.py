# Schemas module
from .requests import (
    UpdateStatusRequest,
    DeleteNewsRequest,
    CreateNewsRequest,
    ProviderConfigRequest,
    PresetTestRequest,
    GenerateRequest,
    RssScheduleRequest
)
from .responses import (
    SuccessResponse,
    UpdateStatusResponse,
    DeleteNewsResponse,
    NewsArticleResponse,
    CategoryResponse,
    CategoryListResponse,
    ConnectionTestResponse,
    GenerateResponse,
    provider_to_response
)

__all__ = [
    "UpdateStatusRequest",
    "DeleteNewsRequest",
    "CreateNewsRequest",
    "ProviderConfigRequest",
    "PresetTestRequest",
    "GenerateRequest",
    "RssScheduleRequest",
    "SuccessResponse",
    "UpdateStatusResponse",
    "DeleteNewsResponse",
    "NewsArticleResponse",
    "CategoryResponse",
    "CategoryListResponse",
    "ConnectionTestResponse",
    "GenerateResponse",
    "provider_to_response"
]
