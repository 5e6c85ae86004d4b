"""Hand-driven gateway doubles for timing and cancellation tests."""

from __future__ import annotations

import asyncio

from proxyctl.api_models import AppliedRoute, HealthRecord, ReloadResponse, Route, RouteInput
from proxyctl.gateway import GatewayUnavailable


class StubGateway:
    def __init__(self) -> None:
        self.routes: list[Route] = []
        self.applied: list[AppliedRoute] = []
        self.health: list[HealthRecord] = []
        self.calls: dict[str, int] = {}
        self.fail: set[str] = set()
        # When set, the named call waits on the event before answering.
        self.gates: dict[str, asyncio.Event] = {}

    async def _enter(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.fail:
            raise GatewayUnavailable(f"{name} unreachable")

    async def list_routes(self) -> list[Route]:
        await self._enter("list_routes")
        return list(self.routes)

    async def create_route(self, route: RouteInput) -> Route:
        await self._enter("create_route")
        created = Route(id=len(self.routes) + 1, **route.model_dump())
        self.routes.append(created)
        return created

    async def get_applied_state(self) -> list[AppliedRoute]:
        await self._enter("applied_state")
        return list(self.applied)

    async def get_health(self) -> list[HealthRecord]:
        await self._enter("health")
        return list(self.health)

    async def reload(self) -> ReloadResponse:
        await self._enter("reload")
        self.applied = [AppliedRoute(**r.model_dump(include={"id", "name", "domain", "target", "enabled"})) for r in self.routes]
        return ReloadResponse(message="Proxy reloaded successfully")

    async def aclose(self) -> None:
        return None
