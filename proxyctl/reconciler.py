from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .api_models import COMPARABLE_FIELDS, AppliedRoute, Route, RouteId
from .runtime import ConsoleState


@dataclass(frozen=True)
class RouteDiff:
    added: frozenset[RouteId]  # desired only, not yet reloaded
    modified: frozenset[RouteId]  # in both, some comparable field differs
    removed: frozenset[RouteId]  # applied only, pending deletion

    @property
    def changed(self) -> set[RouteId]:
        return set(self.added | self.modified | self.removed)

    def __bool__(self) -> bool:
        return bool(self.added or self.modified or self.removed)


def _differs(route: Route, applied: AppliedRoute) -> bool:
    return any(getattr(route, f) != getattr(applied, f) for f in COMPARABLE_FIELDS)


def diff_routes(desired: Iterable[Route], applied: Iterable[AppliedRoute]) -> RouteDiff:
    """Compare desired routes against the applied snapshot by id.

    Field comparison is by value, so two separately fetched copies of the same
    route compare equal.
    """
    desired = list(desired)
    applied_by_id = {a.id: a for a in applied}

    added: set[RouteId] = set()
    modified: set[RouteId] = set()
    for route in desired:
        current = applied_by_id.get(route.id)
        if current is None:
            added.add(route.id)
        elif _differs(route, current):
            modified.add(route.id)

    desired_ids = {r.id for r in desired}
    removed = {rid for rid in applied_by_id if rid not in desired_ids}

    return RouteDiff(added=frozenset(added), modified=frozenset(modified), removed=frozenset(removed))


def compute_change_set(desired: Iterable[Route], applied: Iterable[AppliedRoute]) -> set[RouteId]:
    return diff_routes(desired, applied).changed


class Reconciler:
    """Answers "is the proxy running what the operator asked for" from current state.

    Nothing is cached: every query recomputes from ``state``, which is cheap
    for operator-sized route lists and cannot go stale.
    """

    def __init__(self, state: ConsoleState):
        self.state = state

    def diff(self) -> RouteDiff:
        return diff_routes(self.state.routes, self.state.applied)

    def change_set(self) -> set[RouteId]:
        return compute_change_set(self.state.routes, self.state.applied)

    def has_unapplied_changes(self) -> bool:
        return bool(self.change_set())

    def is_changed(self, route_id: RouteId) -> bool:
        return route_id in self.change_set()
