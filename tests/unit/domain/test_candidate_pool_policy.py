"""Tests for rule ordering, rule applicability and candidate pool building."""

from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.technician import Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.policies.candidate_pool import (
    filter_pool,
    order_rules,
    rule_applies,
    truncate_pool,
)
from autoassign.domain.value_objects.geo_point import GeoPoint


def _rule(rule_id, **overrides) -> AutoAssignmentRule:
    return AutoAssignmentRule(id=rule_id, name=rule_id, **overrides)


def test_lower_priority_number_goes_first():
    rules = [_rule("c", priority=5), _rule("a", priority=1), _rule("b", priority=3)]
    assert [r.id for r in order_rules(rules)] == ["a", "b", "c"]


def test_equal_priority_ordered_by_id():
    rules = [_rule("z", priority=1), _rule("m", priority=1)]
    assert [r.id for r in order_rules(rules)] == ["m", "z"]


def test_inactive_rules_dropped():
    rules = [_rule("a", is_active=False), _rule("b")]
    assert [r.id for r in order_rules(rules)] == ["b"]


def test_rule_without_priority_levels_applies_to_everything():
    assert rule_applies(_rule("a"), WorkOrder(id="wo", status="Open", priority="low"))


def test_rule_priority_levels_filter():
    rule = _rule("a", priority_levels=["high", "critical"])
    assert rule_applies(rule, WorkOrder(id="wo", status="Open", priority="high"))
    assert not rule_applies(rule, WorkOrder(id="wo", status="Open", priority="low"))
    assert not rule_applies(rule, WorkOrder(id="wo", status="Open", priority=None))


def test_filter_pool_by_location():
    techs = [
        Technician(id="t1", name="A", location_id="north"),
        Technician(id="t2", name="B", location_id="south"),
    ]
    pool = filter_pool(_rule("a", allowed_locations=["north"]), techs)
    assert [t.id for t in pool] == ["t1"]


def test_filter_pool_by_service_category():
    techs = [
        Technician(id="t1", name="A", specializations={"hvac"}),
        Technician(id="t2", name="B", specializations={"electrical", "hvac"}),
        Technician(id="t3", name="C"),
    ]
    pool = filter_pool(_rule("a", allowed_service_categories=["electrical"]), techs)
    assert [t.id for t in pool] == ["t2"]


def test_filter_pool_without_allow_lists_keeps_everyone():
    techs = [Technician(id="t1", name="A"), Technician(id="t2", name="B")]
    assert filter_pool(_rule("a"), techs) == techs


def test_truncate_keeps_nearest_and_unknown_last():
    site = GeoPoint(0.0, 0.0)
    wo = WorkOrder(id="wo", status="Open", location=site)
    techs = [
        Technician(id="far", name="Far", location=GeoPoint(0.5, 0.0)),
        Technician(id="unknown", name="Unknown"),
        Technician(id="near", name="Near", location=GeoPoint(0.01, 0.0)),
        Technician(id="mid", name="Mid", location=GeoPoint(0.1, 0.0)),
    ]
    members = truncate_pool(techs, wo, limit=3)
    assert [m.technician.id for m in members] == ["near", "mid", "far"]

    everyone = truncate_pool(techs, wo, limit=0)
    assert [m.technician.id for m in everyone] == ["near", "mid", "far", "unknown"]
    assert everyone[-1].distance_km is None


def test_truncate_without_work_order_location_orders_by_id():
    wo = WorkOrder(id="wo", status="Open")
    techs = [
        Technician(id="b", name="B", location=GeoPoint(1.0, 1.0)),
        Technician(id="a", name="A", location=GeoPoint(2.0, 2.0)),
    ]
    assert [m.technician.id for m in truncate_pool(techs, wo, limit=10)] == ["a", "b"]
