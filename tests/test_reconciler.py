import pytest

from proxyctl.api_models import AppliedRoute, Route
from proxyctl.reconciler import Reconciler, compute_change_set, diff_routes
from proxyctl.runtime import ConsoleState


def _route(rid=1, **kw):
    base = {"id": rid, "name": "a", "domain": "a.com", "target": "t1", "enabled": True}
    base.update(kw)
    return Route(**base)


def _applied(rid=1, **kw):
    base = {"id": rid, "name": "a", "domain": "a.com", "target": "t1", "enabled": True}
    base.update(kw)
    return AppliedRoute(**base)


def test_empty_inputs_have_no_changes():
    assert compute_change_set([], []) == set()


def test_identical_content_is_in_sync_even_for_distinct_objects():
    desired = [_route(1), _route(2, name="b", domain="b.com")]
    applied = [_applied(1), _applied(2, name="b", domain="b.com")]
    assert desired[0] is not applied[0]
    assert compute_change_set(desired, applied) == set()


def test_route_only_in_desired_is_added():
    diff = diff_routes([_route(1)], [])
    assert diff.added == {1}
    assert diff.changed == {1}


def test_route_only_in_applied_is_pending_removal():
    diff = diff_routes([], [_applied(7)])
    assert diff.removed == {7}
    assert compute_change_set([], [_applied(7)]) == {7}


def test_enabled_mismatch_alone_flags_route():
    assert compute_change_set([_route(1, enabled=True)], [_applied(1, enabled=False)]) == {1}


@pytest.mark.parametrize("field,value", [("name", "x"), ("domain", "x.com"), ("target", "t2"), ("enabled", False)])
def test_each_comparable_field_counts(field, value):
    diff = diff_routes([_route(1)], [_applied(1, **{field: value})])
    assert diff.modified == {1}
    assert not diff.added and not diff.removed


def test_timestamps_are_not_compared():
    desired = [_route(1, created_at="2024-01-01T00:00:00Z", updated_at="2024-02-01T00:00:00Z")]
    assert compute_change_set(desired, [_applied(1)]) == set()


def test_mixed_diff_and_subset_invariant():
    desired = [_route(1), _route(2, target="new"), _route(3)]
    applied = [_applied(1), _applied(2), _applied(4)]
    diff = diff_routes(desired, applied)
    assert diff.added == {3}
    assert diff.modified == {2}
    assert diff.removed == {4}
    ids = {r.id for r in desired} | {a.id for a in applied}
    assert diff.changed <= ids


def test_compute_change_set_is_idempotent():
    desired = [_route(1), _route(2, enabled=False)]
    applied = [_applied(2), _applied(3)]
    first = compute_change_set(desired, applied)
    assert compute_change_set(desired, applied) == first == {1, 2, 3}


def test_reconciler_queries_follow_state_without_invalidation():
    state = ConsoleState(routes=[_route(1)], applied=[])
    rec = Reconciler(state)
    assert rec.has_unapplied_changes()
    assert rec.is_changed(1)
    assert not rec.is_changed(2)

    state.replace_applied([_applied(1)])
    assert not rec.has_unapplied_changes()
    assert rec.change_set() == set()
    assert not rec.diff()
