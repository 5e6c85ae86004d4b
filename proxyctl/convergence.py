from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from . import db
from .gateway import GatewayClient, GatewayError
from .health import HealthPoller
from .reconciler import Reconciler
from .routes import AppliedStateCache, RouteStore
from .runtime import ConsoleState
from .settings import settings


@dataclass
class ReloadOutcome:
    state: str  # succeeded|failed|rejected
    message: str
    warning: str | None = None
    finished_at: str = field(default_factory=db.utc_now)

    @property
    def ok(self) -> bool:
        return self.state == "succeeded"


class ConvergenceCoordinator:
    """Drives the proxy from "has unapplied changes" towards desired == applied.

    Sequence: reload call, settle delay, refresh applied then desired state,
    one health poll. The gateway applies config asynchronously and exposes no
    generation id, so the settle delay is a fixed grace period and not a
    guarantee that the snapshot read afterwards is final.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        state: ConsoleState,
        routes: RouteStore,
        applied: AppliedStateCache,
        health: HealthPoller,
        settle_delay_s: float | None = None,
    ):
        self.gateway = gateway
        self.state = state
        self.routes = routes
        self.applied = applied
        self.health = health
        self.settle_delay_s = settings.settle_delay_s if settle_delay_s is None else max(0.0, float(settle_delay_s))

    @property
    def in_progress(self) -> bool:
        return self.state.reloading

    async def reload(self) -> ReloadOutcome:
        if self.state.reloading:
            db.log_event("WARN", "Reload requested while another reload is in progress; ignored")
            return ReloadOutcome(state="rejected", message="Reload already in progress")

        self.state.reloading = True
        try:
            pending = len(Reconciler(self.state).change_set())
            try:
                resp = await self.gateway.reload()
            except GatewayError as e:
                db.log_event("ERROR", f"Reload failed: {e.message}")
                return ReloadOutcome(state="failed", message=e.message)

            await asyncio.sleep(self.settle_delay_s)
            await self._refresh_all()

            message = resp.message or "Proxy reloaded"
            if resp.warning:
                db.log_event("WARN", f"{message} (warning: {resp.warning})")
            else:
                db.log_event("INFO", f"{message} ({pending} pending change(s) before reload)")
            return ReloadOutcome(state="succeeded", message=message, warning=resp.warning)
        finally:
            self.state.reloading = False

    async def _refresh_all(self) -> None:
        # Best effort: stale-but-visible state beats none, so nothing here raises.
        await self.applied.refresh()
        try:
            await self.routes.refresh()
        except GatewayError as e:
            db.log_event("ERROR", f"Failed to refresh routes after reload: {e.message}")
        await self.health.refresh()
