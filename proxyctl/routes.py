from __future__ import annotations

from . import db
from .api_models import Route, RouteId, RouteInput
from .gateway import GatewayClient, GatewayError
from .runtime import ConsoleState

APPLY_HINT = "run reload to update proxy"


class RouteStore:
    """Desired-state store.

    Mutations go to the gateway first; local state is only ever replaced by a
    full re-fetch of ``GET /routes``, never patched in place. A failed mutation
    raises and leaves ``state.routes`` as it was.
    """

    def __init__(self, gateway: GatewayClient, state: ConsoleState):
        self.gateway = gateway
        self.state = state

    async def refresh(self) -> list[Route]:
        routes = await self.gateway.list_routes()
        self.state.replace_routes(routes)
        return self.state.routes

    async def _resync(self) -> None:
        # The mutation already landed; a failed listing only leaves us stale.
        try:
            await self.refresh()
        except GatewayError as e:
            db.log_event("WARN", f"Route list refresh failed after mutation: {e.message}")

    async def create(self, route: RouteInput) -> str:
        created = await self.gateway.create_route(route)
        await self._resync()
        db.log_event("INFO", f"Route added: {route.name} ({route.domain} -> {route.target})", route_id=created.id if created else None)
        return f"Route added - {APPLY_HINT}"

    async def update(self, route_id: RouteId, route: RouteInput) -> str:
        await self.gateway.update_route(route_id, route)
        await self._resync()
        db.log_event("INFO", f"Route updated: {route.name}", route_id=route_id)
        return f"Route updated - {APPLY_HINT}"

    async def delete(self, route_id: RouteId) -> str:
        await self.gateway.delete_route(route_id)
        await self._resync()
        db.log_event("INFO", "Route deleted", route_id=route_id)
        return f"Route deleted - {APPLY_HINT}"

    async def toggle(self, route_id: RouteId) -> str:
        await self.gateway.toggle_route(route_id)
        await self._resync()
        route = self.state.route(route_id)
        if route is None:
            db.log_event("INFO", "Route toggled", route_id=route_id)
            return f"Route toggled - {APPLY_HINT}"
        word = "enabled" if route.enabled else "disabled"
        db.log_event("INFO", f"Route {word}: {route.name}", route_id=route_id)
        return f"Route {word} - {APPLY_HINT}"


class AppliedStateCache:
    """Last snapshot of what the proxy is actually enforcing."""

    def __init__(self, gateway: GatewayClient, state: ConsoleState):
        self.gateway = gateway
        self.state = state

    async def refresh(self) -> bool:
        """Replace the snapshot wholesale. Returns False (and keeps the old one) on failure."""
        try:
            applied = await self.gateway.get_applied_state()
        except GatewayError as e:
            db.log_event("ERROR", f"Failed to fetch applied state: {e.message}")
            return False
        self.state.replace_applied(applied)
        return True
