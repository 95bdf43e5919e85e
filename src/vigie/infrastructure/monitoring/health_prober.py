"""
Endpoint restoration probe.

Periodically checks endpoints the registry marked UNAVAILABLE and
restores them once their `/health` route answers again.
"""

import asyncio
import time
from typing import Callable, List, Optional

import httpx

from vigie.config.settings import RegistryConfig
from vigie.infrastructure.registry import EndpointRegistry
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji


class EndpointHealthProber:
    """
    Background restoration of unavailable endpoints.

    An endpoint is probed only after `probe_reset_after` seconds have
    passed since its last recorded outcome.

    Example:
        prober = EndpointHealthProber(registry)
        prober.start()
        ...
        await prober.stop()
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        config: Optional[RegistryConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        reporter: Optional[SystemReporter] = None,
        timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.config = config or registry.config
        self.reporter = reporter or registry.reporter
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    @property
    def running(self) -> bool:
        """Whether the probe loop is active."""
        return self._task is not None and not self._task.done()

    async def check(self, url: str) -> bool:
        """GET `<url>/health` and report whether it answered 200."""
        try:
            response = await self.client.get(f"{url}/health", timeout=self.timeout)
        except httpx.HTTPError as e:
            self.reporter.debug(
                f"{Emoji.SYSTEM.HEALTH_CHECK} {url} still down: {e}",
                context="Prober",
            )
            return False
        return response.status_code == 200

    async def probe_once(self) -> List[str]:
        """
        Probe every eligible unavailable endpoint once.

        Returns:
            URLs restored to HEALTHY
        """
        now = self._clock()
        restored = []

        for endpoint in self.registry.unavailable_endpoints():
            last = endpoint.last_outcome_at or 0.0
            if now - last < self.config.probe_reset_after:
                continue

            if await self.check(endpoint.url):
                self.registry.restore(endpoint.url)
                restored.append(endpoint.url)

        return restored

    async def _probe_loop(self) -> None:
        interval = self.config.probe_interval

        self.reporter.info(
            f"{Emoji.SYSTEM.HEALTH_CHECK} Endpoint probe started "
            f"(interval: {interval}s)",
            context="Prober",
            verbose_level=2,
        )

        while True:
            await asyncio.sleep(interval)
            try:
                restored = await self.probe_once()
            except Exception as e:
                self.reporter.error(
                    f"{Emoji.ERROR.ERROR} Endpoint probe error: {e}",
                    context="Prober",
                )
                continue

            if restored:
                self.reporter.info(
                    f"{Emoji.STATE.RESTORED} Restored {len(restored)} endpoints",
                    context="Prober",
                )

    def start(self) -> None:
        """Start the probe loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._probe_loop())

    async def stop(self) -> None:
        """Cancel the probe loop and close the owned HTTP client."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
