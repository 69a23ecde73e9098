"""AutoAssignmentRule entity — an administrator-defined weighted policy."""

from __future__ import annotations

from dataclasses import dataclass

from autoassign.domain.value_objects.enums import FallbackAction

WEIGHT_FIELDS: tuple[str, ...] = (
    "weight_availability",
    "weight_specialization",
    "weight_proximity",
    "weight_workload",
    "weight_performance",
)

MIN_WEIGHT = 0
MAX_WEIGHT = 100


class RuleValidationError(ValueError):
    """Raised when a rule carries values the engine refuses to interpret."""


@dataclass
class AutoAssignmentRule:
    id: str | None
    name: str
    priority: int = 0
    is_active: bool = True
    description: str | None = None

    weight_availability: int = 30
    weight_specialization: int = 25
    weight_proximity: int = 20
    weight_workload: int = 15
    weight_performance: int = 10

    max_distance_km: float | None = None
    require_specialization_match: bool = False
    respect_max_concurrent_orders: bool = True

    allowed_locations: list[str] | None = None
    allowed_service_categories: list[str] | None = None
    priority_levels: list[str] | None = None

    fallback_action: FallbackAction = FallbackAction.QUEUE
    fallback_user_id: str | None = None

    def weights(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in WEIGHT_FIELDS}

    def total_weight(self) -> int:
        return sum(self.weights().values())

    def validate(self) -> "AutoAssignmentRule":
        """Reject malformed weights and limits instead of clamping them.

        Returns self so loaders can write ``rules = [r.validate() for r in rows]``.
        """
        for name, value in self.weights().items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise RuleValidationError(
                    f"Rule {self.name!r}: {name} must be an integer, got {value!r}"
                )
            if not MIN_WEIGHT <= value <= MAX_WEIGHT:
                raise RuleValidationError(
                    f"Rule {self.name!r}: {name}={value} is outside "
                    f"[{MIN_WEIGHT}, {MAX_WEIGHT}]"
                )

        if self.total_weight() == 0:
            raise RuleValidationError(f"Rule {self.name!r}: all weights are zero")

        if self.max_distance_km is not None and self.max_distance_km < 0:
            raise RuleValidationError(
                f"Rule {self.name!r}: max_distance_km must not be negative"
            )

        if not isinstance(self.fallback_action, FallbackAction):
            try:
                self.fallback_action = FallbackAction(self.fallback_action)
            except ValueError as e:
                raise RuleValidationError(
                    f"Rule {self.name!r}: unknown fallback action {self.fallback_action!r}"
                ) from e

        return self
