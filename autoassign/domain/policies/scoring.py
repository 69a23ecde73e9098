"""ScoringPolicy — five 0..100 sub-scores and their weighted composite.

Pure functions: no I/O, no clock. ``now`` is always passed in.
"""

from __future__ import annotations

from datetime import datetime

from autoassign.domain.entities.assignment_log import AssignmentCandidate
from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.technician import PerformanceStats, Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.policies.candidate_pool import PoolMember
from autoassign.domain.policies.constraints import exclusion_reason

MAX_SCORE = 100.0
NEUTRAL_SCORE = 50.0

# Availability: schedule component
ON_SHIFT_SCORE = 100.0
OFF_SHIFT_SCORE = 30.0
DEFAULT_MAX_CONCURRENT_ORDERS = 10

# Specialization
EXACT_MATCH_SCORE = 100.0
CATEGORY_ONLY_SCORE = 75.0
GENERALIST_SCORE = 50.0
MISMATCH_SCORE = 25.0

# Proximity: distance at which the score reaches 0 when the rule has no limit
DEFAULT_REFERENCE_DISTANCE_KM = 50.0


def availability_score(technician: Technician, now: datetime) -> float:
    """Schedule score scaled by the technician's free capacity."""
    if not technician.shifts:
        schedule = NEUTRAL_SCORE
    elif technician.is_on_shift(now):
        schedule = ON_SHIFT_SCORE
    else:
        schedule = OFF_SHIFT_SCORE

    capacity = technician.max_concurrent_orders or DEFAULT_MAX_CONCURRENT_ORDERS
    free_fraction = max(0.0, 1.0 - technician.active_work_orders / capacity)
    return schedule * free_fraction


def specialization_score(technician: Technician, work_order: WorkOrder) -> float:
    required = work_order.required_specialization
    if not required:
        return CATEGORY_ONLY_SCORE if work_order.service_category_id else NEUTRAL_SCORE
    if technician.has_specialization(required):
        return EXACT_MATCH_SCORE
    if technician.is_generalist():
        return GENERALIST_SCORE
    return MISMATCH_SCORE


def proximity_score(distance_km: float | None, max_distance_km: float | None) -> float:
    """Linear decay from 100 at 0 km to 0 at the reference distance."""
    if distance_km is None:
        return NEUTRAL_SCORE
    reference = max_distance_km or DEFAULT_REFERENCE_DISTANCE_KM
    return max(0.0, MAX_SCORE - (distance_km / reference) * MAX_SCORE)


def workload_score(active_orders: int, pool_mean: float) -> float:
    """100 * mean / (mean + load): 100 when idle, 50 at the pool mean."""
    if active_orders <= 0:
        return MAX_SCORE
    return MAX_SCORE * pool_mean / (pool_mean + active_orders)


def performance_score(stats: PerformanceStats | None) -> float:
    """Mean of the known ratios; new technicians without history score neutral."""
    if stats is None or stats.is_empty():
        return NEUTRAL_SCORE
    values = [v for v in (stats.completion_rate, stats.sla_adherence_rate) if v is not None]
    ratio = sum(values) / len(values)
    return max(0.0, min(MAX_SCORE, ratio * MAX_SCORE))


def composite_score(rule: AutoAssignmentRule, scores: dict[str, float]) -> float:
    """Weighted mean of the sub-scores; weights are relative, not absolute."""
    total_weight = rule.total_weight()
    if total_weight == 0:
        return 0.0
    weighted = (
        scores["availability"] * rule.weight_availability
        + scores["specialization"] * rule.weight_specialization
        + scores["proximity"] * rule.weight_proximity
        + scores["workload"] * rule.weight_workload
        + scores["performance"] * rule.weight_performance
    )
    return weighted / total_weight


def pool_mean_load(members: list[PoolMember]) -> float:
    if not members:
        return 0.0
    return sum(m.technician.active_work_orders for m in members) / len(members)


def score_candidate(
    rule: AutoAssignmentRule,
    member: PoolMember,
    work_order: WorkOrder,
    mean_load: float,
    now: datetime,
) -> AssignmentCandidate:
    tech = member.technician
    scores = {
        "availability": availability_score(tech, now),
        "specialization": specialization_score(tech, work_order),
        "proximity": proximity_score(member.distance_km, rule.max_distance_km),
        "workload": workload_score(tech.active_work_orders, mean_load),
        "performance": performance_score(tech.performance),
    }
    total = composite_score(rule, scores)
    excluded = exclusion_reason(rule, tech, work_order, member.distance_km)

    return AssignmentCandidate(
        technician_id=tech.id,
        technician_name=tech.name,
        availability_score=scores["availability"],
        specialization_score=scores["specialization"],
        proximity_score=scores["proximity"],
        workload_score=scores["workload"],
        performance_score=scores["performance"],
        total_score=total,
        distance_km=member.distance_km,
        eligible=excluded is None,
        reason=excluded or f"Score: {round(total)}/100",
    )


def score_pool(
    rule: AutoAssignmentRule,
    members: list[PoolMember],
    work_order: WorkOrder,
    now: datetime,
) -> list[AssignmentCandidate]:
    """Score every member; excluded members are kept with ``eligible=False``."""
    mean_load = pool_mean_load(members)
    return [score_candidate(rule, m, work_order, mean_load, now) for m in members]
