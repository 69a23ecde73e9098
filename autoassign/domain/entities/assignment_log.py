"""Assignment audit records — candidates and the immutable attempt log."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime

from autoassign.domain.value_objects.enums import AssignmentStatus, FallbackAction


@dataclass(frozen=True)
class AssignmentCandidate:
    """One technician's evaluation for one work order."""

    technician_id: str
    technician_name: str
    availability_score: float
    specialization_score: float
    proximity_score: float
    workload_score: float
    performance_score: float
    total_score: float
    distance_km: float | None = None
    eligible: bool = True
    reason: str = ""

    def rounded(self, digits: int = 2) -> "AssignmentCandidate":
        """Copy with every score rounded, as stored in the log snapshot."""
        return replace(
            self,
            availability_score=round(self.availability_score, digits),
            specialization_score=round(self.specialization_score, digits),
            proximity_score=round(self.proximity_score, digits),
            workload_score=round(self.workload_score, digits),
            performance_score=round(self.performance_score, digits),
            total_score=round(self.total_score, digits),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AssignmentCandidate":
        return cls(**data)


@dataclass(frozen=True)
class AutoAssignmentLog:
    """Ground truth for one assignment attempt. Never mutated after creation."""

    work_order_id: str
    status: AssignmentStatus
    assigned_at: datetime
    rule_id: str | None = None
    assigned_technician_id: str | None = None
    assignment_score: float | None = None
    availability_score: float | None = None
    specialization_score: float | None = None
    proximity_score: float | None = None
    workload_score: float | None = None
    performance_score: float | None = None
    candidates_evaluated: int = 0
    candidates_data: tuple[AssignmentCandidate, ...] = field(default_factory=tuple)
    failure_reason: str | None = None
    fallback_action_taken: FallbackAction | None = None
    execution_time_ms: int | None = None
    id: str | None = None

    @classmethod
    def for_success(
        cls,
        work_order_id: str,
        rule_id: str | None,
        winner: AssignmentCandidate,
        candidates: tuple[AssignmentCandidate, ...],
        assigned_at: datetime,
        execution_time_ms: int,
    ) -> "AutoAssignmentLog":
        return cls(
            work_order_id=work_order_id,
            status=AssignmentStatus.SUCCESS,
            assigned_at=assigned_at,
            rule_id=rule_id,
            assigned_technician_id=winner.technician_id,
            assignment_score=winner.total_score,
            availability_score=winner.availability_score,
            specialization_score=winner.specialization_score,
            proximity_score=winner.proximity_score,
            workload_score=winner.workload_score,
            performance_score=winner.performance_score,
            candidates_evaluated=len(candidates),
            candidates_data=candidates,
            execution_time_ms=execution_time_ms,
        )
