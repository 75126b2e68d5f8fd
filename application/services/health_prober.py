import asyncio
import logging
import time
from collections.abc import Sequence

from infrastructure.monitoring.logger import get_production_logger
from infrastructure.providers.base import QuoteProvider

logger = logging.getLogger(__name__)


class HealthProber:
    """Reports per-provider liveness, independent of quote traffic."""

    def __init__(self, providers: Sequence[QuoteProvider], probe_timeout: float = 5.0):
        self.providers = list(providers)
        self.probe_timeout = probe_timeout
        self.production_logger = get_production_logger()

    async def probe_all(self, deadline: float | None = None) -> dict[str, bool]:
        start_time = time.perf_counter()
        results = await asyncio.gather(*(self._probe(provider, deadline) for provider in self.providers))
        health = dict(zip((p.name for p in self.providers), results, strict=True))

        self.production_logger.log_health_probe(health, (time.perf_counter() - start_time) * 1000)
        return health

    async def _probe(self, provider: QuoteProvider, deadline: float | None) -> bool:
        loop_deadline = asyncio.get_running_loop().time() + self.probe_timeout
        if deadline is not None:
            loop_deadline = min(loop_deadline, deadline)

        try:
            async with asyncio.timeout_at(loop_deadline):
                return await provider.probe(loop_deadline)
        except TimeoutError:
            logger.warning(f'Health probe for {provider.name} timed out')
            return False
        except Exception as e:
            logger.warning(f'Health probe for {provider.name} failed: {e}')
            return False
