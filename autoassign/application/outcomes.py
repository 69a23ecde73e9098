"""Evaluation outcomes — explicit result variants instead of exceptions.

Every evaluation ends in exactly one of ``Assigned``, ``FellBack``, ``Failed``
or ``Skipped``; ``EvaluationResult.response`` flattens it into the wire shape
returned to callers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Union

from autoassign.domain.entities.assignment_log import AssignmentCandidate, AutoAssignmentLog
from autoassign.domain.value_objects.enums import FallbackAction, SkipReason


@dataclass(frozen=True)
class Assigned:
    winner: AssignmentCandidate
    rule_id: str | None
    candidates_evaluated: int


@dataclass(frozen=True)
class FellBack:
    action: FallbackAction
    reason: str
    rule_id: str | None
    candidates_evaluated: int
    notification_sent: bool = False


@dataclass(frozen=True)
class Failed:
    reason: str
    superseded: bool = False


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason
    message: str


Outcome = Union[Assigned, FellBack, Failed, Skipped]


@dataclass(frozen=True)
class AutoAssignmentResponse:
    success: bool
    work_order_id: str
    assigned_technician_id: str | None = None
    technician_name: str | None = None
    assignment_score: float | None = None
    candidates_evaluated: int | None = None
    execution_time_ms: int | None = None
    message: str | None = None
    fallback_action: str | None = None

    def to_dict(self) -> dict:
        """Serialize, dropping unset optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class EvaluationResult:
    work_order_id: str
    outcome: Outcome
    execution_time_ms: int
    log: AutoAssignmentLog | None = None

    @property
    def response(self) -> AutoAssignmentResponse:
        outcome = self.outcome
        if isinstance(outcome, Assigned):
            return AutoAssignmentResponse(
                success=True,
                work_order_id=self.work_order_id,
                assigned_technician_id=outcome.winner.technician_id,
                technician_name=outcome.winner.technician_name,
                assignment_score=outcome.winner.total_score,
                candidates_evaluated=outcome.candidates_evaluated,
                execution_time_ms=self.execution_time_ms,
                message=f"Assigned to {outcome.winner.technician_name}",
            )
        if isinstance(outcome, FellBack):
            return AutoAssignmentResponse(
                success=False,
                work_order_id=self.work_order_id,
                candidates_evaluated=outcome.candidates_evaluated,
                execution_time_ms=self.execution_time_ms,
                message=outcome.reason,
                fallback_action=outcome.action.value,
            )
        if isinstance(outcome, Failed):
            return AutoAssignmentResponse(
                success=False,
                work_order_id=self.work_order_id,
                execution_time_ms=self.execution_time_ms,
                message=outcome.reason,
            )
        return AutoAssignmentResponse(
            success=False,
            work_order_id=self.work_order_id,
            execution_time_ms=self.execution_time_ms,
            message=outcome.message,
        )
