"""AI provider routes: CRUD, connection tests and generation."""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from api.auth import AdminPrincipal
from api.dependencies import (
    get_provider_cache,
    get_provider_gateway,
    get_provider_health_service,
    optional_admin,
    require_admin
)
from api.models.provider import AiProviderModel
from api.schemas.requests import GenerateRequest, PresetTestRequest, ProviderConfigRequest
from api.schemas.responses import GenerateResponse, ConnectionTestResponse, SuccessResponse, provider_to_response
from api.services.provider_health import ProviderHealthService
from database.connection import get_db
from database.repositories.provider_repo import ProviderRepository
from database.repositories.usage_repo import UsageLogRepository
from engine import connectivity
from engine.cache import ProviderCache
from engine.gateway import ProviderGateway
from engine.presets import provider_from_preset
from shared.exceptions import AppError, InvalidRequestError, NotFoundError

REQUIRED_PROVIDER_FIELDS = ("name", "endpoint", "model")


router = APIRouter(prefix="/ai", tags=["ai"])


def _connection_response(result: connectivity.ConnectionResult) -> ConnectionTestResponse:
    return ConnectionTestResponse(success=result.success, latency=result.latency_ms, message=result.message or None)


def _validate_config(config: Dict[str, Any]) -> None:
    """Reject a configuration the engine could not load."""
    try:
        AiProviderModel.model_validate({"_id": "pending", **config})
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid provider configuration: {e.error_count()} errors") from e


@router.get("/providers")
async def list_providers(
    principal: Optional[AdminPrincipal] = Depends(optional_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> List[Dict[str, Any]]:
    """List providers by priority. API keys are masked for non-admins."""
    providers = await ProviderRepository(db).list_providers()
    return [provider_to_response(p, reveal_key=principal is not None) for p in providers]


@router.post("/providers")
async def create_provider(
    request: ProviderConfigRequest,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: ProviderCache = Depends(get_provider_cache)
) -> Dict[str, Any]:
    """Create a provider. `name`, `endpoint` and `model` are required."""
    config = request.to_document()
    if any(not config.get(key) for key in REQUIRED_PROVIDER_FIELDS):
        raise InvalidRequestError("Missing required fields")

    config.setdefault("type", "openai-compatible")
    config.setdefault("provider_category", "free")
    config.setdefault("method", "POST")
    config.setdefault("headers", {})
    config.setdefault("enabled", True)
    config.setdefault("description", "")
    config["priority"] = config.get("priority") or 99
    _validate_config(config)

    provider = await ProviderRepository(db).create_provider(config)
    cache.invalidate()
    return provider_to_response(provider, reveal_key=True)


@router.put("/providers/{provider_id}", response_model=SuccessResponse)
async def update_provider(
    provider_id: str,
    request: ProviderConfigRequest,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: ProviderCache = Depends(get_provider_cache)
):
    """Update provider configuration fields."""
    repo = ProviderRepository(db)
    existing = await repo.get_provider(provider_id)
    if existing is None:
        raise NotFoundError(f"Provider {provider_id} not found")

    fields = request.to_document()
    _validate_config({**existing, **fields})

    if not await repo.update_provider(provider_id, fields):
        raise NotFoundError(f"Provider {provider_id} not found")
    cache.invalidate()
    return SuccessResponse()


@router.delete("/providers/{provider_id}", response_model=SuccessResponse)
async def delete_provider(
    provider_id: str,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: ProviderCache = Depends(get_provider_cache)
):
    """Delete a provider."""
    deleted = await ProviderRepository(db).delete_provider(provider_id)
    if not deleted:
        raise NotFoundError(f"Provider {provider_id} not found")
    cache.invalidate()
    return SuccessResponse()


@router.post("/test", response_model=ConnectionTestResponse)
async def test_provider(
    request: ProviderConfigRequest,
    admin: AdminPrincipal = Depends(require_admin),
    service: ProviderHealthService = Depends(get_provider_health_service)
):
    """Test an unsaved provider configuration."""
    config = request.to_document()
    config.setdefault("_id", "test-provider")
    _validate_config(config)

    result = await service.test(config)
    return _connection_response(result)


@router.post("/status", response_model=ConnectionTestResponse)
async def test_preset(
    request: PresetTestRequest,
    admin: AdminPrincipal = Depends(require_admin),
    service: ProviderHealthService = Depends(get_provider_health_service)
):
    """Test a vendor preset with the caller's key, model and endpoint."""
    provider = provider_from_preset(request.provider, request.config)
    if provider is None:
        raise InvalidRequestError("Unknown provider")

    result = await service.test(provider.model_dump(by_alias=True))
    return _connection_response(result)


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    request: GenerateRequest,
    admin: AdminPrincipal = Depends(require_admin),
    gateway: ProviderGateway = Depends(get_provider_gateway)
):
    """Generate content with provider failover."""
    result = await gateway.generate(request.prompt, request.system_prompt, request.feature)
    if result is None:
        raise AppError("No AI provider could generate content")

    return GenerateResponse(
        content=result.content,
        providerUsed=result.provider_used,
        modelUsed=result.model_used,
        executionTimeMs=result.execution_time_ms,
        estimatedTokens=result.estimated_tokens
    )


@router.get("/logs")
async def usage_logs(
    limit: int = 50,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> List[Dict[str, Any]]:
    """Most recent provider calls."""
    logs = await UsageLogRepository(db).recent(limit=limit)
    return [{**{k: v for k, v in log.items() if k != "_id"}, "id": str(log.get("_id"))} for log in logs]
