"""Failover summary generation across the active providers."""
import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import aiohttp

from api.models.provider import AiProviderModel, HealthStatusEnum
from database.repositories.provider_repo import AI_PROVIDERS, ProviderRepository
from database.repositories.usage_repo import UsageLogRepository
from database.transaction import DocumentStore, TransactionHandle
from engine.adapters import ProviderCallError, call_provider
from engine.cache import ProviderCache, provider_cache
from shared.config import settings
from shared.utils import estimate_tokens, get_utc_now

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
SUCCESS_SCORE_GAIN = 10
FAILURE_SCORE_PENALTY = 25


@dataclass
class GenerationResult:
    """Generated text and where it came from."""
    content: str
    provider_used: str
    model_used: str
    execution_time_ms: int
    estimated_tokens: int
    provider_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def health_band(score: int) -> str:
    if score >= 80:
        return HealthStatusEnum.HEALTHY.value
    if score >= 50:
        return HealthStatusEnum.DEGRADED.value
    return HealthStatusEnum.UNHEALTHY.value


def apply_generation_outcome(
    provider: Dict[str, Any],
    success: bool,
    now: datetime,
    error: Optional[str] = None
) -> Dict[str, Any]:
    """Health fields to write after a generation attempt."""
    score = provider.get("healthScore")
    score = 100 if score is None else score

    if success:
        score = min(100, score + SUCCESS_SCORE_GAIN)
        fields: Dict[str, Any] = {"failureCount": 0, "lastError": None}
    else:
        score = max(0, score - FAILURE_SCORE_PENALTY)
        failures = (provider.get("failureCount") or 0) + 1
        fields = {"failureCount": failures, "lastError": error, "lastFailureAt": now}
        if failures >= settings.provider_failure_threshold:
            fields["pausedUntil"] = now + timedelta(minutes=settings.provider_pause_minutes)

    fields["healthScore"] = score
    fields["healthStatus"] = health_band(score)
    fields["isHealthy"] = success
    return fields


class ProviderGateway:
    """Tries active providers in priority order until one produces content."""

    def __init__(self, store: DocumentStore, cache: Optional[ProviderCache] = None):
        self.store = store
        self.cache = cache or provider_cache
        self.provider_repo = ProviderRepository(store.db)
        self.usage_repo = UsageLogRepository(store.db)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        feature: str = "unknown"
    ) -> Optional[GenerationResult]:
        """Generate content, failing over between providers. None if all fail."""
        providers = await self.cache.get_active(self.provider_repo)
        if not providers:
            logger.error("AI gateway: no active providers available")
            return None

        for provider in providers:
            result = await self._attempt(provider, prompt, system_prompt or DEFAULT_SYSTEM_PROMPT, feature)
            if result is not None:
                return result

        logger.error(f"AI gateway: all {len(providers)} providers failed")
        return None

    async def _attempt(
        self,
        provider: AiProviderModel,
        prompt: str,
        system_prompt: str,
        feature: str
    ) -> Optional[GenerationResult]:
        cap_ms = settings.provider_generation_timeout_ms
        timeout_ms = min(provider.timeout_ms or cap_ms, cap_ms)
        tokens = estimate_tokens(prompt)
        start = time.monotonic()

        logger.info(f"AI launch: [{provider.name} :: {provider.model}] (timeout {timeout_ms}ms)")

        error: Optional[str] = None
        content: Optional[str] = None
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=timeout_ms / 1000)
            ) as session:
                content = await call_provider(session, provider, system_prompt, prompt)
        except asyncio.TimeoutError:
            error = f"Timed out after {timeout_ms}ms"
        except (aiohttp.ClientError, ProviderCallError) as e:
            error = str(e)
        except Exception as e:
            logger.exception(f"AI call crashed for provider {provider.id}")
            error = str(e) or type(e).__name__

        duration_ms = int((time.monotonic() - start) * 1000)
        success = error is None

        if success:
            logger.info(f"AI success: [{provider.model}] in {duration_ms}ms")
        else:
            logger.warning(f"AI fail: [{provider.model}] - {error} ({duration_ms}ms)")

        await self._record_outcome(provider.id, success, error)
        await self._log_usage(provider, tokens, duration_ms, success, feature, error)

        if not success:
            return None
        return GenerationResult(
            content=content,
            provider_used=provider.name,
            model_used=provider.model,
            execution_time_ms=duration_ms,
            estimated_tokens=tokens,
            provider_id=provider.id
        )

    async def _record_outcome(self, provider_id: str, success: bool, error: Optional[str]):
        now = get_utc_now()

        async def update_health(txn: TransactionHandle):
            provider = await txn.get(AI_PROVIDERS, provider_id)
            if provider is None:
                return
            txn.update(AI_PROVIDERS, provider_id, apply_generation_outcome(provider, success, now, error))

        try:
            await self.store.run_transaction(update_health)
        except Exception:
            # Best effort: generated content is returned either way
            logger.exception(f"Failed to update health stats for provider {provider_id}")

        if not success:
            self.cache.invalidate()

    async def _log_usage(
        self,
        provider: AiProviderModel,
        tokens: int,
        duration_ms: int,
        success: bool,
        feature: str,
        error: Optional[str]
    ):
        try:
            await self.usage_repo.log_usage(
                provider_id=provider.id,
                provider_name=provider.name,
                model=provider.model,
                estimated_prompt_tokens=tokens,
                latency_ms=duration_ms,
                success=success,
                feature=feature,
                error_message=error
            )
        except Exception:
            logger.exception(f"Failed to log usage for provider {provider.id}")
