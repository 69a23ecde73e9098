"""Tests for AutoAssignmentRule validation."""

import pytest

from autoassign.domain.entities.rule import AutoAssignmentRule, RuleValidationError
from autoassign.domain.value_objects.enums import FallbackAction


def _rule(**overrides) -> AutoAssignmentRule:
    return AutoAssignmentRule(id="r1", name="Default", **overrides)


def test_default_rule_is_valid():
    rule = _rule()
    assert rule.validate() is rule
    assert rule.total_weight() == 100


def test_weights_need_not_sum_to_100():
    rule = _rule(
        weight_availability=10,
        weight_specialization=10,
        weight_proximity=0,
        weight_workload=0,
        weight_performance=0,
    )
    rule.validate()
    assert rule.total_weight() == 20


@pytest.mark.parametrize("value", [-1, 101, 250])
def test_out_of_range_weight_is_rejected(value):
    with pytest.raises(RuleValidationError, match="weight_proximity"):
        _rule(weight_proximity=value).validate()


@pytest.mark.parametrize("value", [12.5, "30", True])
def test_non_integer_weight_is_rejected(value):
    with pytest.raises(RuleValidationError, match="integer"):
        _rule(weight_workload=value).validate()


def test_all_zero_weights_are_rejected():
    rule = _rule(
        weight_availability=0,
        weight_specialization=0,
        weight_proximity=0,
        weight_workload=0,
        weight_performance=0,
    )
    with pytest.raises(RuleValidationError, match="all weights are zero"):
        rule.validate()


def test_negative_max_distance_is_rejected():
    with pytest.raises(RuleValidationError, match="max_distance_km"):
        _rule(max_distance_km=-5).validate()


def test_unknown_fallback_action_is_rejected():
    with pytest.raises(RuleValidationError, match="fallback action"):
        _rule(fallback_action="page_oncall").validate()


def test_fallback_action_string_is_coerced():
    rule = _rule(fallback_action="notify_manager").validate()
    assert rule.fallback_action is FallbackAction.NOTIFY_MANAGER


def test_validation_error_is_a_value_error():
    assert issubclass(RuleValidationError, ValueError)
