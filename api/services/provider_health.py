"""Provider health checks: test, record status, recover, invalidate."""
import logging
import time
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.models.provider import AiProviderModel, HealthStatusEnum, ProviderStatusEnum
from api.services.publisher import ProviderEventPublisher
from database.repositories.provider_repo import ProviderRepository
from engine import connectivity
from engine.cache import ProviderCache, provider_cache
from engine.connectivity import ConnectionResult
from shared.config import settings
from shared.utils import ensure_utc, get_utc_now

logger = logging.getLogger(__name__)

ConnectionCheck = Callable[..., Awaitable[ConnectionResult]]

SKIPPED = "skipped"


@dataclass
class ProviderTestResult:
    """One row of a health-check report."""
    id: str
    provider: str
    model: str
    status: str
    latency: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecoveryReport:
    """Partition of the recovery sweep."""
    recovered: List[str] = field(default_factory=list)
    still_failed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"recovered": self.recovered, "stillFailed": self.still_failed}


def is_out_of_rotation(provider: Dict[str, Any]) -> bool:
    """Offline or degraded providers are left to the recovery sweep."""
    return (
        provider.get("status") == ProviderStatusEnum.OFFLINE.value
        or provider.get("healthStatus") in (HealthStatusEnum.DEGRADED.value, HealthStatusEnum.UNHEALTHY.value)
    )


def is_pause_elapsed(provider: Dict[str, Any], now: datetime) -> bool:
    paused_until = ensure_utc(provider.get("pausedUntil"))
    return paused_until is None or paused_until <= now


class ProviderHealthService:
    """Keeps persisted provider status in line with the latest connectivity test."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        publisher: Optional[ProviderEventPublisher] = None,
        cache: Optional[ProviderCache] = None,
        checker: Optional[ConnectionCheck] = None
    ):
        self.provider_repo = ProviderRepository(db)
        self.publisher = publisher
        self.cache = cache or provider_cache
        self.checker = checker or connectivity.test_provider_connection

    async def test(self, provider: Dict[str, Any], timeout_ms: Optional[int] = None) -> ConnectionResult:
        """Run the connectivity check against a stored provider document."""
        return await self.checker(AiProviderModel.model_validate(provider), timeout_ms=timeout_ms)

    async def update_status(self, provider_id: str, result: ConnectionResult) -> str:
        """Persist a connectivity result as ``online``/``offline``."""
        status = ProviderStatusEnum.ONLINE.value if result.success else ProviderStatusEnum.OFFLINE.value
        await self.provider_repo.update_status(
            provider_id,
            status,
            error=None if result.success else result.message,
            latency_ms=result.latency_ms
        )
        if self.publisher:
            await self.publisher.publish_status_update(
                provider_id, status, result.latency_ms, None if result.success else result.message
            )
        return status

    async def recover_degraded(
        self,
        deadline: Optional[float] = None,
        exclude: Iterable[str] = ()
    ) -> RecoveryReport:
        """Re-test out-of-rotation providers whose pause has elapsed, except those in ``exclude``."""
        exclude = set(exclude)
        now = get_utc_now()
        report = RecoveryReport()

        candidates = [
            p for p in await self.provider_repo.list_enabled()
            if p["_id"] not in exclude and is_out_of_rotation(p) and is_pause_elapsed(p, now)
        ]
        for provider in candidates:
            provider_id = provider["_id"]
            remaining = _remaining_ms(deadline)
            if remaining is not None and remaining <= 0:
                logger.warning(f"Health check out of time, recovery skipped for {provider_id}")
                report.still_failed.append(provider_id)
                continue

            try:
                result = await self.test(provider, timeout_ms=remaining)
            except Exception as e:
                logger.exception(f"Recovery test crashed for provider {provider_id}")
                result = ConnectionResult(success=False, message=str(e))

            if result.success:
                await self.provider_repo.mark_recovered(provider_id, result.latency_ms)
                if self.publisher:
                    await self.publisher.publish_status_update(provider_id, ProviderStatusEnum.ONLINE.value, result.latency_ms)
                report.recovered.append(provider_id)
            else:
                # Another failure extends the pause
                await self.update_status(provider_id, result)
                report.still_failed.append(provider_id)

        if report.recovered:
            logger.info(f"Recovered: {', '.join(report.recovered)}")
        if report.still_failed:
            logger.info(f"Still failing: {', '.join(report.still_failed)}")
        return report

    async def invalidate_cache(self):
        """Drop the local provider snapshot and tell other processes to do the same."""
        self.cache.invalidate()
        if self.publisher:
            await self.publisher.publish_cache_invalidation()

    async def run_health_check(self) -> Dict[str, Any]:
        """
        Test every in-rotation provider, sweep the out-of-rotation ones,
        then invalidate the cache.

        Individual provider failures are reported in the results, never raised.
        """
        deadline = time.monotonic() + settings.health_check_max_duration_seconds
        providers = [p for p in await self.provider_repo.list_enabled() if not is_out_of_rotation(p)]
        logger.info(f"AI health check: testing {len(providers)} active providers")

        results = []
        for provider in providers:
            results.append(await self._check_provider(provider, deadline))

        # Providers tested above are not tested twice in one run
        recovery = await self.recover_degraded(deadline, exclude=[r.id for r in results])
        await self.invalidate_cache()

        return {
            "success": True,
            "timestamp": get_utc_now().isoformat(),
            "activeProviders": [r.to_dict() for r in results],
            "recovery": recovery.to_dict()
        }

    async def _check_provider(self, provider: Dict[str, Any], deadline: float) -> ProviderTestResult:
        provider_id = provider["_id"]
        row = ProviderTestResult(
            id=provider_id,
            provider=provider.get("name", ""),
            model=provider.get("model", ""),
            status=SKIPPED
        )

        remaining = _remaining_ms(deadline)
        if remaining <= 0:
            logger.warning(f"Health check out of time, skipping {row.provider}")
            row.error = "Health check time budget exhausted"
            return row

        try:
            result = await self.test(provider, timeout_ms=remaining)
        except Exception as e:
            logger.exception(f"Provider test crashed for {row.provider}")
            result = ConnectionResult(success=False, message=str(e))

        row.status = await self.update_status(provider_id, result)
        row.latency = result.latency_ms
        row.error = result.message or None

        latency = f"({result.latency_ms}ms)" if result.latency_ms else ""
        log = logger.info if result.success else logger.warning
        log(f"  - {row.provider}: {row.status} {latency}")
        return row


def _remaining_ms(deadline: Optional[float]) -> Optional[int]:
    if deadline is None:
        return None
    return int((deadline - time.monotonic()) * 1000)
