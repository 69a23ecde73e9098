"""CandidatePoolPolicy — which technicians a rule considers for a work order."""

from __future__ import annotations

from dataclasses import dataclass

from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.technician import Technician
from autoassign.domain.entities.work_order import WorkOrder
from autoassign.domain.value_objects.geo_point import distance_between


@dataclass(frozen=True)
class PoolMember:
    """A technician in the pool together with their distance to the work order."""

    technician: Technician
    distance_km: float | None


def rule_applies(rule: AutoAssignmentRule, work_order: WorkOrder) -> bool:
    """A rule with ``priority_levels`` only covers work orders of those priorities."""
    if not rule.priority_levels:
        return True
    return work_order.priority in rule.priority_levels


def order_rules(rules: list[AutoAssignmentRule]) -> list[AutoAssignmentRule]:
    """Active rules by precedence: lower ``priority`` number first, then id."""
    active = [r for r in rules if r.is_active]
    return sorted(active, key=lambda r: (r.priority, r.id or ""))


def filter_pool(
    rule: AutoAssignmentRule,
    technicians: list[Technician],
) -> list[Technician]:
    """Apply the rule's location and service-category allow-lists."""
    pool = technicians
    if rule.allowed_locations:
        allowed = set(rule.allowed_locations)
        pool = [t for t in pool if t.location_id in allowed]
    if rule.allowed_service_categories:
        categories = set(rule.allowed_service_categories)
        pool = [t for t in pool if t.specializations & categories]
    return pool


def truncate_pool(
    technicians: list[Technician],
    work_order: WorkOrder,
    limit: int,
) -> list[PoolMember]:
    """Keep at most *limit* technicians, nearest first.

    Ordering is (known distance ASC, unknown distance last, technician id ASC),
    so the kept subset is the same for identical inputs.
    """
    members = [
        PoolMember(technician=t, distance_km=distance_between(t.location, work_order.location))
        for t in technicians
    ]
    members.sort(
        key=lambda m: (
            m.distance_km is None,
            m.distance_km if m.distance_km is not None else 0.0,
            m.technician.id,
        )
    )
    if limit > 0:
        members = members[:limit]
    return members
