from __future__ import annotations

import asyncio

from . import db
from .api_models import HealthRecord, RouteId
from .gateway import GatewayClient, GatewayError
from .runtime import ConsoleState
from .settings import settings


class HealthPoller:
    """Keeps ``state.health`` roughly current by polling ``GET /health``.

    ``start()`` fetches once right away, then every ``interval_s`` seconds
    until ``stop()``. The running task doubles as the "already polling" marker,
    so a second ``start()`` does not create a second timer.

    Each successful poll replaces the whole map. A failed poll keeps the
    previous map, so the display degrades to last-known rather than unknown.
    Overlapping polls are not ordered: whichever response lands last wins.
    """

    def __init__(self, gateway: GatewayClient, state: ConsoleState, interval_s: float | None = None):
        self.gateway = gateway
        self.state = state
        self.interval_s = settings.health_interval_s if interval_s is None else max(0.0, float(interval_s))
        self._task: asyncio.Task[None] | None = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._generation += 1
        self._task = asyncio.create_task(self._loop(self._generation), name="proxyctl-health-poller")

    def stop(self) -> None:
        if self._task is None:
            return
        # Bumping the generation also drops a fetch that completes between
        # cancel() and the task actually unwinding.
        self._generation += 1
        self._task.cancel()
        self._task = None

    async def aclose(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def refresh(self) -> bool:
        """Poll once, outside the timer. Returns True if the map was replaced."""
        return await self._poll(None)

    async def _loop(self, generation: int) -> None:
        while True:
            try:
                await self._poll(generation)
            except Exception as e:
                db.log_event("ERROR", f"Health poll failed: {type(e).__name__}: {e}")
            await asyncio.sleep(self.interval_s)

    async def _poll(self, generation: int | None) -> bool:
        try:
            records = await self.gateway.get_health()
        except GatewayError as e:
            db.log_event("WARN", f"Failed to fetch health status: {e.message}")
            return False
        if generation is not None and generation != self._generation:
            return False
        self.state.replace_health(records)
        return True

    # --- display helpers ---

    def health_details(self, route_id: RouteId) -> HealthRecord | None:
        return self.state.health.get(route_id)

    def health_class(self, route_id: RouteId) -> str:
        rec = self.state.health.get(route_id)
        if rec is None:
            return "status-unknown"
        return "status-healthy" if rec.healthy else "status-unhealthy"

    def health_text(self, route_id: RouteId) -> str:
        rec = self.state.health.get(route_id)
        if rec is None:
            return "Checking..."
        return "Healthy" if rec.healthy else "Unhealthy"

    def health_tooltip(self, route_id: RouteId) -> str:
        rec = self.state.health.get(route_id)
        if rec is None:
            return "Click for details"
        if rec.healthy:
            return f"OK - {rec.response_time_ms}ms"
        return rec.error_type or "unknown error"
