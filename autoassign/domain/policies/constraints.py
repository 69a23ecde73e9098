"""Hard constraints — binary eligibility filters applied before ranking."""

from __future__ import annotations

from autoassign.domain.entities.rule import AutoAssignmentRule
from autoassign.domain.entities.technician import Technician
from autoassign.domain.entities.work_order import WorkOrder


def exclusion_reason(
    rule: AutoAssignmentRule,
    technician: Technician,
    work_order: WorkOrder,
    distance_km: float | None,
) -> str | None:
    """Return why *technician* is ineligible under *rule*, or None if eligible.

    Checks, in order:
      1. concurrency cap (when the rule respects max concurrent orders);
      2. required specialization (when the rule demands a match);
      3. max distance (only when the distance is known).
    """
    if rule.respect_max_concurrent_orders and technician.is_at_capacity():
        return (
            f"At capacity ({technician.active_work_orders}/"
            f"{technician.max_concurrent_orders} active orders)"
        )

    required = work_order.required_specialization
    if rule.require_specialization_match and required:
        if not technician.has_specialization(required):
            return f"Missing required specialization '{required}'"

    if rule.max_distance_km is not None and distance_km is not None:
        if distance_km > rule.max_distance_km:
            return f"Outside max distance ({distance_km:.1f} km > {rule.max_distance_km:g} km)"

    return None
