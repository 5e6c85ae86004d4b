from __future__ import annotations

from dataclasses import dataclass, field

from .api_models import AppliedRoute, HealthRecord, Route, RouteId


@dataclass
class ConsoleState:
    """In-memory view shared by the store, cache, poller and coordinator.

    One instance is created per console and handed to each component. All
    access happens on the event loop thread, so no locking.
    """

    routes: list[Route] = field(default_factory=list)  # desired
    applied: list[AppliedRoute] = field(default_factory=list)  # last snapshot from the proxy
    health: dict[RouteId, HealthRecord] = field(default_factory=dict)  # route_id -> last record
    reloading: bool = False

    def route(self, route_id: RouteId) -> Route | None:
        for r in self.routes:
            if r.id == route_id:
                return r
        return None

    def replace_routes(self, routes: list[Route]) -> None:
        self.routes = list(routes)

    def replace_applied(self, applied: list[AppliedRoute]) -> None:
        self.applied = list(applied)

    def replace_health(self, records: list[HealthRecord]) -> None:
        self.health = {r.route_id: r for r in records}
