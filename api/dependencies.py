"""FastAPI dependencies shared by the routers."""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from api.auth import AdminPrincipal, TokenVerifier, authorize_admin
from api.services.provider_health import ProviderHealthService
from api.services.publish_state import PublishStateService
from api.services.publisher import ProviderEventPublisher
from api.services.summarizer import SummaryService
from database.connection import get_db, get_redis, get_store
from database.transaction import DocumentStore
from engine.cache import ProviderCache, provider_cache
from engine.gateway import ProviderGateway
from shared.config import settings
from shared.exceptions import AppError, UnauthorizedError

# auto_error=False so a missing header maps to our 401 instead of FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)

_verifier = TokenVerifier()


def get_token_verifier() -> TokenVerifier:
    return _verifier


def get_provider_cache() -> ProviderCache:
    return provider_cache


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> AdminPrincipal:
    """Admin guard: 401 without a valid token, 403 for non-admins."""
    token = credentials.credentials if credentials else None
    return await authorize_admin(token, verifier, db)


async def optional_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Optional[AdminPrincipal]:
    """Admin principal if the caller is one, otherwise None."""
    if credentials is None:
        return None
    try:
        return await authorize_admin(credentials.credentials, verifier, db)
    except AppError:
        return None


async def get_publish_state_service(
    store: DocumentStore = Depends(get_store)
) -> PublishStateService:
    return PublishStateService(store)


async def get_provider_health_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
    cache: ProviderCache = Depends(get_provider_cache)
) -> ProviderHealthService:
    return ProviderHealthService(db, ProviderEventPublisher(redis_client), cache)


async def get_provider_gateway(
    store: DocumentStore = Depends(get_store),
    cache: ProviderCache = Depends(get_provider_cache)
) -> ProviderGateway:
    return ProviderGateway(store, cache)


async def get_summary_service(
    store: DocumentStore = Depends(get_store),
    gateway: ProviderGateway = Depends(get_provider_gateway)
) -> SummaryService:
    return SummaryService(store, gateway)


async def require_cron_secret(
    key: Optional[str] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
):
    """Scheduler guard: the bearer token or `?key=` must match `cron_secret` when one is set."""
    if not settings.cron_secret:
        return
    supplied = credentials.credentials if credentials else key
    if supplied != settings.cron_secret:
        raise UnauthorizedError()
