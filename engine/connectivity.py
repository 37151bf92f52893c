"""Connectivity check for AI providers."""
import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
import aiohttp

from api.models.provider import AiProviderModel
from engine.adapters import ProviderCallError, call_provider
from shared.config import settings

logger = logging.getLogger(__name__)

CHECK_SYSTEM_PROMPT = "You are a connectivity check. Answer as briefly as possible."
CHECK_USER_PROMPT = "Reply with the single word OK."


@dataclass
class ConnectionResult:
    """Outcome of one connectivity test."""
    success: bool
    latency_ms: Optional[int] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def check_timeout_ms(provider: AiProviderModel, cap_ms: Optional[int] = None) -> int:
    """Per-provider check timeout, optionally capped by the caller's remaining budget."""
    timeout_ms = provider.timeout_ms or settings.provider_check_timeout_ms
    if cap_ms is not None:
        timeout_ms = min(timeout_ms, cap_ms)
    return max(timeout_ms, 1)


async def test_provider_connection(
    provider: AiProviderModel,
    timeout_ms: Optional[int] = None
) -> ConnectionResult:
    """
    Send a tiny prompt through the provider's adapter.

    Never raises for provider-side problems: HTTP errors, bad payloads and
    timeouts all come back as a failed ``ConnectionResult``.
    """
    timeout_ms = check_timeout_ms(provider, timeout_ms)
    start = time.monotonic()

    def elapsed_ms() -> int:
        return int((time.monotonic() - start) * 1000)

    try:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout_ms / 1000)
        ) as session:
            await call_provider(session, provider, CHECK_SYSTEM_PROMPT, CHECK_USER_PROMPT)
    except asyncio.TimeoutError:
        return ConnectionResult(success=False, latency_ms=elapsed_ms(), message=f"Timed out after {timeout_ms}ms")
    except (aiohttp.ClientError, ProviderCallError) as e:
        return ConnectionResult(success=False, latency_ms=elapsed_ms(), message=str(e))

    latency = elapsed_ms()
    logger.debug(f"Connectivity check for {provider.name} succeeded in {latency}ms")
    return ConnectionResult(success=True, latency_ms=latency, message="")
