from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from . import db
from .api_models import RouteInput
from .convergence import ConvergenceCoordinator, ReloadOutcome
from .gateway import GatewayClient
from .health import HealthPoller
from .reconciler import Reconciler
from .routes import AppliedStateCache, RouteStore
from .runtime import ConsoleState

_IMPORT = TypeAdapter(list[RouteInput])


class Console:
    """One operator session against one gateway.

    Builds every component around a single ``ConsoleState`` so the store,
    cache, poller and coordinator all see the same view.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        state: ConsoleState | None = None,
        *,
        settle_delay_s: float | None = None,
        health_interval_s: float | None = None,
    ):
        self.gateway = gateway
        self.state = state or ConsoleState()
        self.routes = RouteStore(gateway, self.state)
        self.applied = AppliedStateCache(gateway, self.state)
        self.reconciler = Reconciler(self.state)
        self.health = HealthPoller(gateway, self.state, interval_s=health_interval_s)
        self.coordinator = ConvergenceCoordinator(
            gateway,
            self.state,
            routes=self.routes,
            applied=self.applied,
            health=self.health,
            settle_delay_s=settle_delay_s,
        )

    async def __aenter__(self) -> "Console":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.health.aclose()
        await self.gateway.aclose()

    async def load(self) -> None:
        """Initial fill: desired routes (errors propagate), applied state and health (best effort)."""
        await self.routes.refresh()
        await self.applied.refresh()
        await self.health.refresh()

    async def reload(self) -> ReloadOutcome:
        return await self.coordinator.reload()

    async def export_config(self, path: str | Path) -> int:
        """Write the gateway's export document to ``path``. Returns the number of routes written."""
        data = await self.gateway.export_config()
        out = Path(path)
        out.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        db.log_event("INFO", f"Exported config to {out}")
        return len(data) if isinstance(data, list) else 0

    async def import_config(self, path: str | Path) -> str:
        """Send routes from a JSON file to the gateway, then re-read desired state.

        Raises ValueError if the file is not a JSON list of routes.
        """
        src = Path(path)
        try:
            routes = _IMPORT.validate_json(src.read_bytes())
        except ValidationError as e:
            raise ValueError(f"{src} is not a valid route list: {e.error_count()} validation error(s)") from e

        resp = await self.gateway.import_routes(routes)
        await self.routes.refresh()
        message = resp.message or f"Imported {len(routes)} routes"
        db.log_event("INFO", f"{message} from {src}")
        return message
